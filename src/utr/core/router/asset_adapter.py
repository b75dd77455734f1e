"""
Balance queries and transfers across asset classes.

The router only talks to asset contracts through their public ABI
(``balanceOf``, ``ownerOf``, ``transferFrom``, ``safeTransferFrom``), so any
contract implementing the standard works, not just the bundled ones. Native
transfers pay out of the router's own balance, which holds the value the
caller attached to the invocation.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..abi import decode_address, decode_bool, decode_uint256, encode_call
from ..router_exceptions import InvalidAssetClassError, VMExecutionError
from .types import ID_721_ALL, AssetClass, AssetRef

if TYPE_CHECKING:
    from ..state import WorldState

logger = logging.getLogger(__name__)


class AssetAdapter:
    """Per-class balance and transfer primitives, called as ``router``."""

    def __init__(self, state: "WorldState", router: str) -> None:
        self.state = state
        self.router = router

    def balance_of(self, asset: AssetRef, holder: str) -> int:
        """
        Balance of ``holder`` in ``asset``.

        For NonFungible assets, ``ID_721_ALL`` counts every unit held; any
        other id yields 1 if ``holder`` owns it and 0 otherwise.

        Raises:
            InvalidAssetClassError: If ``asset.asset_class`` is not recognised
        """
        asset_class = asset.asset_class
        if asset_class is AssetClass.NATIVE:
            return self.state.native_balance(holder)
        if asset_class is AssetClass.FUNGIBLE:
            return self._query_uint(asset.contract, "balanceOf(address)", [holder])
        if asset_class is AssetClass.NON_FUNGIBLE:
            if asset.id == ID_721_ALL:
                return self._query_uint(asset.contract, "balanceOf(address)", [holder])
            result = self.state.static_call(
                self.router, asset.contract, encode_call("ownerOf(uint256)", [asset.id])
            )
            owner, _ = decode_address(result, 0)
            return 1 if owner == holder.lower() else 0
        if asset_class is AssetClass.SEMI_FUNGIBLE:
            return self._query_uint(
                asset.contract, "balanceOf(address,uint256)", [holder, asset.id]
            )
        raise InvalidAssetClassError(
            f"Unrecognised asset class: {asset_class!r}",
            details={"contract": asset.contract},
        )

    def transfer(self, asset: AssetRef, sender: str, recipient: str, amount: int) -> None:
        """
        Move ``amount`` of ``asset`` from ``sender`` to ``recipient``.

        Token transfers rely on the router being approved by ``sender``.
        NonFungible transfers move the unit ``asset.id``; ``amount`` is unused.

        Raises:
            InvalidAssetClassError: If ``asset.asset_class`` is not recognised
            VMExecutionError: If the asset contract rejects the transfer
        """
        asset_class = asset.asset_class
        if asset_class is AssetClass.NATIVE:
            self.state.transfer_native(self.router, recipient, amount)
        elif asset_class is AssetClass.FUNGIBLE:
            result = self.state.call(
                self.router,
                asset.contract,
                0,
                encode_call("transferFrom(address,address,uint256)", [sender, recipient, amount]),
            )
            # Tokens that return nothing are accepted, as are those returning true
            if result and not decode_bool(result, 0)[0]:
                raise VMExecutionError("TRANSFER_FROM_FAILED")
        elif asset_class is AssetClass.NON_FUNGIBLE:
            self.state.call(
                self.router,
                asset.contract,
                0,
                encode_call(
                    "safeTransferFrom(address,address,uint256)", [sender, recipient, asset.id]
                ),
            )
        elif asset_class is AssetClass.SEMI_FUNGIBLE:
            self.state.call(
                self.router,
                asset.contract,
                0,
                encode_call(
                    "safeTransferFrom(address,address,uint256,uint256,bytes)",
                    [sender, recipient, asset.id, amount, b""],
                ),
            )
        else:
            raise InvalidAssetClassError(
                f"Unrecognised asset class: {asset_class!r}",
                details={"contract": asset.contract},
            )

        logger.debug(
            "Router asset transfer",
            extra={
                "event": "router.transfer",
                "asset_class": asset_class.name,
                "contract": asset.contract[:10],
                "from": sender[:10],
                "to": recipient[:10],
                "amount": amount,
            },
        )

    def _query_uint(self, contract: str, signature: str, args: list) -> int:
        result = self.state.static_call(self.router, contract, encode_call(signature, args))
        value, _ = decode_uint256(result, 0)
        return value

"""
Scenario files for ``utr simulate``.

A scenario describes the starting world (native balances and deployed
ERC20/ERC721/ERC1155 contracts with their holdings and approvals) plus the
execute request to run against it. JSON and YAML are both accepted, since
every JSON document is also valid YAML.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Union

import yaml
from pydantic import BaseModel, Field

from ..core import config
from ..core.abi import normalize_address
from ..core.contracts import ERC20Token, ERC721Token, ERC1155Token
from ..core.input_validation_schemas import ExecuteRequestInput
from ..core.state import WorldState

# Minting authority for scenario contracts
DEPLOYER = "0x000000000000000000000000000000000000dead"


class ERC20Input(BaseModel):
    type: Literal["ERC20"]
    address: str
    name: str = "Token"
    symbol: str = "TKN"
    decimals: int = 18
    balances: Dict[str, int] = Field(default_factory=dict)
    approvals: Dict[str, Dict[str, int]] = Field(default_factory=dict)  # owner -> spender -> amount


class ERC721Input(BaseModel):
    type: Literal["ERC721"]
    address: str
    name: str = "Collection"
    symbol: str = "NFT"
    owners: Dict[int, str] = Field(default_factory=dict)  # tokenId -> owner
    operators: Dict[str, List[str]] = Field(default_factory=dict)  # owner -> operators


class ERC1155Input(BaseModel):
    type: Literal["ERC1155"]
    address: str
    uri: str = ""
    balances: Dict[int, Dict[str, int]] = Field(default_factory=dict)  # id -> holder -> amount
    operators: Dict[str, List[str]] = Field(default_factory=dict)


ContractInput = Union[ERC20Input, ERC721Input, ERC1155Input]


class ScenarioInput(BaseModel):
    router: Optional[str] = None
    native_balances: Dict[str, int] = Field(default_factory=dict)
    contracts: List[ContractInput] = Field(default_factory=list)
    request: ExecuteRequestInput

    @property
    def router_address(self) -> str:
        return normalize_address(self.router or config.ROUTER_ADDRESS)


def load_document(path: Union[str, Path]) -> Any:
    """Parse a JSON or YAML file."""
    with open(path, "r", encoding="utf-8") as handle:
        return yaml.safe_load(handle)


def load_scenario(path: Union[str, Path]) -> ScenarioInput:
    return ScenarioInput.model_validate(load_document(path))


def build_world(scenario: ScenarioInput) -> WorldState:
    """Deploy the scenario's contracts and fund its accounts."""
    state = WorldState()
    for address, amount in scenario.native_balances.items():
        state.credit_native(address, amount)

    for spec in scenario.contracts:
        if isinstance(spec, ERC20Input):
            token = state.deploy(
                ERC20Token(
                    name=spec.name,
                    symbol=spec.symbol,
                    decimals=spec.decimals,
                    address=spec.address,
                    owner=DEPLOYER,
                )
            )
            for holder, amount in spec.balances.items():
                token.mint(DEPLOYER, holder, amount)
            for owner, spenders in spec.approvals.items():
                for spender, amount in spenders.items():
                    token.approve(owner, spender, amount)
        elif isinstance(spec, ERC721Input):
            collection = state.deploy(
                ERC721Token(name=spec.name, symbol=spec.symbol, address=spec.address, owner=DEPLOYER)
            )
            for token_id, holder in sorted(spec.owners.items()):
                collection.mint(DEPLOYER, holder, token_id)
            for owner, operators in spec.operators.items():
                for operator in operators:
                    collection.set_approval_for_all(owner, operator, True)
        else:
            multi = state.deploy(ERC1155Token(uri=spec.uri, address=spec.address, owner=DEPLOYER))
            for token_id, holders in sorted(spec.balances.items()):
                for holder, amount in holders.items():
                    multi.mint(DEPLOYER, holder, token_id, amount)
            for owner, operators in spec.operators.items():
                for operator in operators:
                    multi.set_approval_for_all(owner, operator, True)
    return state


def holdings(state: WorldState) -> List[Dict[str, Any]]:
    """Flatten every non-zero balance in the world into rows."""
    rows: List[Dict[str, Any]] = []
    for address, amount in sorted(state.native_balances.items()):
        if amount:
            rows.append({"asset": "NATIVE", "id": "", "holder": address, "amount": amount})
    for contract in state.contracts.values():
        if isinstance(contract, ERC20Token):
            for holder, amount in sorted(contract.balances.items()):
                if amount:
                    rows.append(
                        {"asset": f"ERC20 {contract.symbol}", "id": "", "holder": holder, "amount": amount}
                    )
        elif isinstance(contract, ERC721Token):
            for token_id, holder in sorted(contract.owners.items()):
                rows.append(
                    {"asset": f"ERC721 {contract.symbol}", "id": str(token_id), "holder": holder, "amount": 1}
                )
        elif isinstance(contract, ERC1155Token):
            for token_id, holders in sorted(contract.balances.items()):
                for holder, amount in sorted(holders.items()):
                    if amount:
                        rows.append(
                            {"asset": f"ERC1155 {contract.address[:10]}", "id": str(token_id), "holder": holder, "amount": amount}
                        )
    return rows

"""Records delivered by the chain execution component.

Blocks, transactions and actions arrive fully executed; the payload models
below validate the ``data`` of the entity-affecting actions before anything
is rendered.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import AwareDatetime, BaseModel, Field


class TransactionType(str, Enum):
    INPUT = "input"
    SUSPEND = "suspend"


class TransactionStatus(str, Enum):
    EXECUTED = "executed"
    SOFT_FAIL = "soft_fail"
    HARD_FAIL = "hard_fail"
    EXPIRED = "expired"


class Action(BaseModel):
    name: str
    domain: str
    key: str
    data: Dict[str, Any] = Field(default_factory=dict)


class Transaction(BaseModel):
    trx_id: str
    expiration: AwareDatetime
    max_charge: int
    payer: str
    type: TransactionType = TransactionType.INPUT
    status: TransactionStatus = TransactionStatus.EXECUTED
    signatures: List[str] = Field(default_factory=list)
    keys: List[str] = Field(default_factory=list, description="Public keys recovered from the signatures")
    elapsed: int = 0
    charge: int = 0
    suspend_name: Optional[str] = None
    action_count: Optional[int] = None
    actions: List[Action] = Field(default_factory=list)


class Block(BaseModel):
    block_id: str
    block_num: int
    prev_block_id: str
    timestamp: AwareDatetime
    trx_merkle_root: str
    producer: str
    trx_count: Optional[int] = None
    transactions: List[Transaction] = Field(default_factory=list)


# Action payloads

Permission = Dict[str, Any]


class NewDomain(BaseModel):
    name: str
    creator: str
    issue: Permission
    transfer: Permission
    manage: Permission


class UpdateDomain(BaseModel):
    name: str
    issue: Optional[Permission] = None
    transfer: Optional[Permission] = None
    manage: Optional[Permission] = None


class IssueToken(BaseModel):
    domain: str
    names: List[str]
    owner: List[str]


class TransferToken(BaseModel):
    domain: str
    name: str
    to: List[str]
    memo: str = ""


class DestroyToken(BaseModel):
    domain: str
    name: str


class GroupDef(BaseModel):
    name: str
    key: str
    root: Dict[str, Any]


class NewGroup(BaseModel):
    name: str
    group: GroupDef


class UpdateGroup(BaseModel):
    name: str
    group: GroupDef


class NewFungible(BaseModel):
    name: str
    sym_name: str
    sym: str = Field(..., description="Symbol as precision,S#id (e.g. 5,S#1)")
    creator: str
    issue: Permission
    manage: Permission
    total_supply: str = ""

    @property
    def sym_id(self) -> int:
        return int(self.sym.split('#', 1)[1])


class UpdateFungible(BaseModel):
    sym_id: int
    issue: Optional[Permission] = None
    manage: Optional[Permission] = None


class AddMeta(BaseModel):
    key: str
    value: str
    creator: str


# Token ownership

@dataclass(frozen=True)
class Owned:
    owners: Tuple[str, ...]


@dataclass(frozen=True)
class Burned:
    pass


Ownership = Union[Owned, Burned]

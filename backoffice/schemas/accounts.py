"""Chart of accounts schemas."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from backoffice.models.ledger import ChartOfAccountType


class ChartOfAccountCreate(BaseModel):
    account_name: str = Field(..., min_length=1, max_length=150)
    account_type: ChartOfAccountType
    description: str = ""
    parent_id: int | None = None
    is_control_account: bool = False


class ChartOfAccountUpdate(BaseModel):
    account_name: str | None = Field(default=None, min_length=1, max_length=150)
    account_type: ChartOfAccountType | None = None
    description: str | None = None
    parent_id: int | None = None
    is_control_account: bool | None = None


class ChartOfAccountRead(BaseModel):
    id: int
    account_name: str
    account_type: ChartOfAccountType
    description: str
    parent_id: int | None
    path: str | None
    depth: int
    is_control_account: bool
    is_default: bool
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

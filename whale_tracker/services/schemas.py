from pydantic import BaseModel, Field


class RichListItem(BaseModel):
    """One row of a chain explorer's rich list.

    Explorers return balances and percentages as strings; pydantic coerces them.
    """

    address: str = Field(min_length=1)
    balance: float = Field(ge=0)
    percentage: float | None = None

    model_config = {"extra": "ignore"}


class CrossChainFigures(BaseModel):
    """Supply/balance figures captured for one time slot across chains."""

    mainchain_top100: float | None = None
    esc_bridge_balance: float | None = None
    esc_total_supply: float | None = None
    esc_top100: float | None = None
    eth_bridged_supply: float | None = None

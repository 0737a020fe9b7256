"""Investor positions (voting power) per founder.

An InvestorPosition is the accumulated amount an investor has contributed to
one founder's treasury. The amount is used verbatim as vote weight.
"""

from pydantic import Field

from .base import DomainModel, AccountId, Weight


class InvestorPosition(DomainModel):
    """An investor's accumulated stake in one founder's treasury.

    Lifecycle:
        - Created lazily by the first admitted investment
        - Grows only through further investments
        - Removed whole by ``redeem_all`` / ``convert_all`` (no partial exit)

    Example:
        InvestorPosition(investor="investor_a", founder="founder_alice", amount=20)
        → votes on founder_alice's proposals carry weight 20
    """

    investor: AccountId = Field(
        description="Investor holding the position"
    )

    founder: AccountId = Field(
        description="Founder whose treasury received the funds"
    )

    amount: Weight = Field(
        default=0,
        description="Accumulated invested amount (= voting power)"
    )

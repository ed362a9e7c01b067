"""
Render Models

What a rendering collaborator receives. These are plain, already-formatted
values: a UI layer only has to place text on screen.
"""

from pydantic import BaseModel, Field

from tallyroll.models.ledger import DisplayMode, OperationKind


class LedgerLine(BaseModel):
    """One formatted line of the tape."""

    entry_id: str
    kind: OperationKind
    amount_text: str = Field(
        ...,
        description="Signed amount, e.g. '+5' or '−3'"
    )
    total_text: str = Field(
        ...,
        description="Running total, e.g. '= 2'"
    )
    is_negative_total: bool = False


class DisplayView(BaseModel):
    """Everything needed to draw the calculator once."""

    primary: str
    secondary: str = ""
    clear_label: str = "AC"
    current_entry: str = "0"
    display_mode: DisplayMode = DisplayMode.PLAIN
    lines: list[LedgerLine] = Field(default_factory=list)
    total: float = 0.0
    total_text: str = "0"

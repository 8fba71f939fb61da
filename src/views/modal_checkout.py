from typing import List

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, Markdown

from db.checkout import place_order
from db.database import connect
from db.models import CartProduct
from utils.messages import NewOrderMessage
from views.modal_dialog import DialogModal

REQUIRED_FIELDS = {
    "input-full-name": "Full name",
    "input-phone": "Phone",
    "input-address": "Address",
}


class CheckoutModal(ModalScreen[str]):
    """
    Order summary plus contact/shipping form.
    Dismisses with the new order id, or "" when the user backs out.
    """

    BINDINGS = [Binding("escape", "cancel", "Back", show=False)]

    def __init__(self, lines: List[CartProduct]):
        super().__init__()
        self.lines = lines

    def compose(self) -> ComposeResult:
        with Vertical(id="div-checkout"):
            yield Markdown(self._summary_md(), id="md-summary")
            yield Input(placeholder="Full name", id="input-full-name")
            yield Input(placeholder="Phone", id="input-phone")
            yield Input(placeholder="Email (optional)", id="input-email")
            yield Input(placeholder="Shipping address", id="input-address")
            yield Input(placeholder="Note (optional)", id="input-note")
            yield Input(placeholder="Discount code (optional)", id="input-discount")
            with Horizontal():
                yield Button("Go Back", id="btn-quit")
                yield Button("Place Order", id="btn-submit", variant="primary")

    def _summary_md(self) -> str:
        rows = [
            "### Order Summary",
            "",
            "| Product | Qty | Unit Price | Line Total |",
            "|:---|:---:|---:|---:|",
        ]
        subtotal = 0.0
        for line in self.lines:
            line_total = line.product.price * line.quantity
            subtotal += line_total
            rows.append(
                f"| {line.product.name_pr} | {line.quantity} "
                f"| {line.product.price:.2f} | {line_total:.2f} |"
            )
        rows.append("")
        rows.append(f"**Subtotal:** ${subtotal:.2f}")
        return "\n".join(rows)

    def on_mount(self) -> None:
        self.query_one("#input-full-name", Input).focus()

    def _value(self, input_id: str) -> str:
        return self.query_one(f"#{input_id}", Input).value.strip()

    @on(Button.Pressed, "#btn-submit")
    @work()
    async def handle_submit(self) -> None:
        for input_id, label in REQUIRED_FIELDS.items():
            if not self._value(input_id):
                widget = self.query_one(f"#{input_id}", Input)
                widget.add_class("-invalid")
                widget.focus()
                self.notify(f"{label} is required.", severity="error")
                return

        if not await self.app.push_screen_wait(
            DialogModal(
                "Place order? This cannot be undone.",
                primary_text="Yes",
                secondary_text="No",
                tone="positive",
            )
        ):
            return

        async with connect() as conn:
            try:
                order = await place_order(
                    conn,
                    self.app.state.user_id,
                    full_name=self._value("input-full-name"),
                    phone=self._value("input-phone"),
                    email=self._value("input-email"),
                    address=self._value("input-address"),
                    note=self._value("input-note"),
                    discount_code=self._value("input-discount") or None,
                )
            except (ValueError, LookupError) as e:
                self.notify(str(e), severity="error")
                return

        self.app.post_message(NewOrderMessage(order.order_id))
        self.dismiss(order.order_id)

    @on(Button.Pressed, "#btn-quit")
    def action_cancel(self) -> None:
        self.dismiss("")

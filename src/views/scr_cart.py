from typing import Dict, List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Label, Rule

from db.cart_repository import CartRepository
from db.checkout import order_total
from db.database import connect
from db.models import Cart, CartProduct
from utils.messages import CartChangedMessage
from views.base_screen import BaseScreen
from views.modal_checkout import CheckoutModal
from views.modal_dialog import DialogModal


class CartScreen(BaseScreen):
    """
    Cart of the current user, one row per product with its category,
    supplier and image. Quantity changes go through CartRepository so stock
    follows them.
    """

    BINDINGS = [
        Binding("i", "change_qty(1)", "Qty +1", show=True),
        Binding("d", "change_qty(-1)", "Qty -1", show=True),
        Binding("x", "remove", "Remove", show=True),
        Binding("c", "checkout", "Checkout", show=True),
    ]

    def __init__(self) -> None:
        super().__init__()
        self._lines: Dict[str, CartProduct] = {}

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield DataTable(id="table-cart")
            yield Label("Total Cart Value: $0.00", id="label-cart-total")
            yield Rule(line_style="dashed")
            with Horizontal(id="hort-buttons"):
                yield Button("Refresh", id="btn-refresh")
                yield Button("Checkout", id="btn-checkout", variant="primary")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns(
            "Product",
            "Category",
            "Supplier",
            "Image",
            "Unit ($)",
            "Qty",
            "In Stock",
            "Line ($)",
        )
        self.load_cart()

    @on(CartChangedMessage)
    @on(ScreenResume)
    @on(Button.Pressed, "#btn-refresh")
    def handle_cart_change(self) -> None:
        self.load_cart()

    @work(exclusive=True, group="cart")  # exclusive, else rows get added twice
    async def load_cart(self) -> None:
        async with connect() as conn:
            repo = CartRepository(conn)
            lines = await repo.get_cart_product(self.app.state.user_id)

        table = self.query_one(DataTable)
        table.clear()
        for line in lines:
            table.add_row(
                line.product.name_pr,
                line.category.category_name if line.category else "-",
                line.supplier.supplier_name if line.supplier else "-",
                line.image.image_href if line.image else "-",
                f"{line.product.price:.2f}",
                line.quantity,
                line.product.quantity_pr,
                f"{line.product.price * line.quantity:.2f}",
                key=line.product.product_id,
            )
        self._lines = {line.product.product_id: line for line in lines}
        self.query_one("#label-cart-total", Label).update(
            f"Total Cart Value: ${order_total(lines):.2f}"
        )

    def _selected_line(self) -> Optional[CartProduct]:
        table = self.query_one(DataTable)
        if table.row_count == 0:
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        return self._lines.get(row_key.value)

    @work(exclusive=True, group="cart-edit")
    async def action_change_qty(self, delta: int) -> None:
        line = self._selected_line()
        if line is None:
            self.notify("Cart is empty.", severity="warning")
            return

        new_qty = line.quantity + delta
        if new_qty <= 0:
            # delete() puts the quantity back on the shelf, update(0) would not
            await self._remove(line)
            return

        async with connect() as conn:
            try:
                await CartRepository(conn).update(
                    Cart(self.app.state.user_id, line.product.product_id, new_qty)
                )
            except ValueError:
                self.notify(
                    f"Only {line.product.quantity_pr + line.quantity} "
                    f"{line.product.name_pr} available.",
                    severity="error",
                )
                return
        self.post_message(CartChangedMessage())

    @work(exclusive=True, group="cart-edit")
    async def action_remove(self) -> None:
        line = self._selected_line()
        if line is None:
            self.notify("Cart is empty.", severity="warning")
            return
        await self._remove(line)

    async def _remove(self, line: CartProduct) -> None:
        if not await self.app.push_screen_wait(
            DialogModal(
                f"Remove {line.product.name_pr} from cart?",
                primary_text="Yes",
                secondary_text="No",
                tone="warning",
            )
        ):
            return
        async with connect() as conn:
            await CartRepository(conn).delete(
                Cart(self.app.state.user_id, line.product.product_id, line.quantity)
            )
        self.notify("Item removed from cart.")
        self.post_message(CartChangedMessage())

    @on(Button.Pressed, "#btn-checkout")
    def handle_checkout(self) -> None:
        self.action_checkout()

    @work()
    async def action_checkout(self) -> None:
        lines: List[CartProduct] = list(self._lines.values())
        if not lines:
            self.notify("Cart is empty.", severity="warning")
            return
        await self.app.push_screen_wait(CheckoutModal(lines))
        self.post_message(CartChangedMessage())

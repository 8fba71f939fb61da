from typing import Dict, List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.events import ScreenResume
from textual.widgets import DataTable, Markdown

from db.database import connect
from db.models import OrderLineRow, UserOrderRow
from db.order_repository import OrderRepository
from views.base_screen import BaseScreen
from views.modal_dialog import DialogModal


class OrdersScreen(BaseScreen):
    """
    The user's orders, newest first, with the lines of the highlighted one.

    Layout:
    - Orders table at the top.
    - Markdown detail of the highlighted order below.
    """

    BINDINGS = [
        Binding("r", "reload", "Refresh", show=True),
        Binding("x", "cancel_order", "Cancel Order", show=True),
    ]

    def __init__(self) -> None:
        super().__init__()
        self._orders: Dict[str, UserOrderRow] = {}

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield DataTable(id="table-orders")
            yield Markdown("", id="md-order-detail")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Order", "Date", "State", "Items", "Total ($)")
        self.load_orders()

    @on(ScreenResume)
    def action_reload(self) -> None:
        self.load_orders()

    @work(exclusive=True, group="orders")
    async def load_orders(self) -> None:
        async with connect() as conn:
            repo = OrderRepository(conn)
            orders = await repo.get_by_user_id(self.app.state.user_id)

        table = self.query_one(DataTable)
        table.clear()
        for o in orders:
            table.add_row(
                o.order_id,
                o.created_at.strftime("%Y-%m-%d %H:%M"),
                o.state,
                o.item_count,
                f"{o.total_price:.2f}",
                key=o.order_id,
            )
        self._orders = {o.order_id: o for o in orders}
        if not orders:
            await self._render_detail(None, [])

    def _selected_order(self) -> Optional[UserOrderRow]:
        table = self.query_one(DataTable)
        if table.row_count == 0:
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        return self._orders.get(row_key.value)

    @on(DataTable.RowHighlighted)
    def handle_row_highlight(self) -> None:
        order = self._selected_order()
        if order:
            self.load_detail(order)

    @work(exclusive=True, group="order-detail")
    async def load_detail(self, order: UserOrderRow) -> None:
        async with connect() as conn:
            lines = await OrderRepository(conn).get_all_by_id_order_by_descending(
                order.order_id
            )
        await self._render_detail(order, lines)

    async def _render_detail(
        self, order: Optional[UserOrderRow], lines: List[OrderLineRow]
    ) -> None:
        md = self.query_one("#md-order-detail", Markdown)
        if order is None:
            await md.update("### No orders yet.")
            return
        rows = [
            f"### Order {order.order_id} ({order.state})",
            "",
            "| Product | Qty | Unit Price | Line Total |",
            "|:---|:---:|---:|---:|",
        ]
        for line in lines:
            rows.append(
                f"| {line.name_pr} | {line.quantity} | {line.price:.2f} "
                f"| {line.quantity * line.price:.2f} |"
            )
        rows.append("")
        rows.append(f"**Total paid:** ${order.total_price:.2f}")
        await md.update("\n".join(rows))

    @work()
    async def action_cancel_order(self) -> None:
        order = self._selected_order()
        if order is None:
            return
        if order.state != "Pending":
            self.notify("Only pending orders can be cancelled.", severity="warning")
            return
        if not await self.app.push_screen_wait(
            DialogModal(
                f"Cancel order {order.order_id}?",
                primary_text="Yes",
                secondary_text="No",
                tone="error",
            )
        ):
            return
        async with connect() as conn:
            await OrderRepository(conn).update_state(order.order_id, "Cancelled")
        self.notify(f"Order {order.order_id} cancelled.")
        self.load_orders()

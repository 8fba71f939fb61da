from textual import on
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import LoadingIndicator

from utils.logger import get_logger
from utils.messages import NewOrderMessage
from utils.state import GlobalState
from views.scr_cart import CartScreen
from views.scr_orders import OrdersScreen

_logger = get_logger(__name__)


class ShopApp(App):
    BINDINGS = [
        Binding("ctrl+t", "switch_light", "Toggle Theme", show=True),
    ]

    MODES = {
        "cart": CartScreen,
        "orders": OrdersScreen,
    }

    MODE_TITLES = {"cart": "Cart", "orders": "My Orders"}

    CSS_PATH = [
        "views/styles/index.tcss",
        "views/styles/cart.tcss",
        "views/styles/orders.tcss",
    ]

    state: GlobalState

    def __init__(self):
        super().__init__()
        self.state = GlobalState()
        self.title = "Tech Shop"

    def compose(self) -> ComposeResult:
        yield LoadingIndicator()

    async def on_mount(self) -> None:
        _logger.debug(f"Starting for user {self.state.user_id}")
        await self.switch_mode("cart")

    def action_switch_light(self):
        if self.theme == "textual-dark":
            self.theme = "solarized-light"
        else:
            self.theme = "textual-dark"
        self.notify(f"Theme changed to {self.theme}")

    @on(NewOrderMessage)
    def handle_new_order(self, message: NewOrderMessage) -> None:
        self.notify(f"Order placed. Your order number is {message.order_id}.")


def run() -> None:
    ShopApp().run()


if __name__ == "__main__":
    run()

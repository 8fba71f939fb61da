from textual import work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.screen import Screen
from textual.widgets import Footer, Header

from views.modal_dialog import DialogModal


class BaseScreen(Screen):
    """
    Inherited by all screens: header, footer, mode switching and quit.
    """

    BINDINGS = [
        Binding("f1", "app.switch_mode('cart')", "Cart", show=True),
        Binding("f2", "app.switch_mode('orders')", "Orders", show=True),
        Binding("ctrl+z", "quit", "Quit App", show=True),
    ]

    def __init__(self):
        super().__init__()
        self.sub_title = self.app.MODE_TITLES.get(self._mode_name(), "")

    def _mode_name(self) -> str:
        for name, screen_cls in self.app.MODES.items():
            if isinstance(self, screen_cls):
                return name
        return ""

    def compose(self) -> ComposeResult:
        yield Header()
        yield Footer(show_command_palette=False)

    @work()
    async def action_quit(self):
        if await self.app.push_screen_wait(
            DialogModal("Are you sure you want to quit?", "Yes", "No", "error")
        ):
            self.app.exit()

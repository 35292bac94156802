from textual import on, work
from textual.app import ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.events import Key
from textual.widgets import Button, Input, Label, Switch, TabbedContent, TabPane

from services import auth
from services.errors import DuplicateIdentityError, ValidationFailure
from utils.messages import UserLoginMessage
from views.base_screen import BaseScreen
from views.modal_dialog import DialogModal, QuitDialogModal

REGISTRATION_FIELDS = ["username", "password", "name", "email", "phone", "address"]


class LoginScreen(BaseScreen):
    """
    Dismissed once a customer or an admin logged in; app.state holds the context.
    """

    def __init__(self):
        super().__init__()
        self.configure(header_sub_title="Login", show_sidebar=False)

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with TabbedContent(id="super-tab-loginscr"):
            with TabPane("Login", id="tab-login"):
                with Vertical(id="div-login"):
                    yield Label("Username")
                    yield Input(placeholder="alice", id="input-login-username")
                    yield Label("Password")
                    yield Input(
                        placeholder="*********", password=True, id="input-login-pwd"
                    )
                    with Horizontal(id="div-login-admin"):
                        yield Switch(value=False, id="switch-admin")
                        yield Label("Log in as administrator")
                    with Horizontal(id="div-login-btns"):
                        yield Button("Quit", id="btn-quit")
                        yield Button("Login", id="btn-login", variant="primary")

            with TabPane("Sign up", id="tab-signup"):
                with Vertical(id="div-reg"):
                    yield Label("Username (4-20 letters, digits or _)")
                    yield Input(placeholder="jane_doe", id="input-reg-username")
                    yield Label("Password (at least 6 characters)")
                    yield Input(
                        placeholder="*********", password=True, id="input-reg-password"
                    )
                    yield Label("Name")
                    yield Input(placeholder="Jane Doe", id="input-reg-name")
                    yield Label("Email")
                    yield Input(placeholder="user@example.com", id="input-reg-email")
                    yield Label("Phone (10 digits)")
                    yield Input(placeholder="0912345678", id="input-reg-phone")
                    yield Label("Address")
                    yield Input(placeholder="12 Harbor Rd, Keelung", id="input-reg-address")
                    with Container(id="div-reg-btns"):
                        yield Button("Register", id="btn-reg", variant="primary")

    def on_mount(self):
        self.query_one("#input-login-username").focus()

    def on_key(self, event: Key) -> None:
        if event.key == "enter" and self.focused == self.query_one("#input-login-pwd"):
            self.handle_login_submit()
        if event.key == "enter" and self.focused == self.query_one("#input-reg-address"):
            self.handle_registration_submit()

    @on(Button.Pressed, "#btn-login")
    @work(exclusive=True)
    async def handle_login_submit(self) -> None:
        username = self.query_one("#input-login-username", Input).value.strip()
        pwd = self.query_one("#input-login-pwd", Input).value
        as_admin = self.query_one("#switch-admin", Switch).value

        if not username or not pwd:
            self.notify("Username or password cannot be empty!", severity="error")
            return

        if await self.app.state.login(username, pwd, as_admin=as_admin):
            self.notify(f"Hello {username}!")
            self.app.post_message(UserLoginMessage())
            self.dismiss()
        else:
            self.notify("Invalid username or password.", severity="error")
            input_login_pwd = self.query_one("#input-login-pwd", Input)
            input_login_pwd.value = ""
            input_login_pwd.focus()
            input_login_pwd.add_class("-invalid")

    @on(Button.Pressed, "#btn-reg")
    @work(exclusive=True)
    async def handle_registration_submit(self) -> None:
        inputs = {
            field: self.query_one(f"#input-reg-{field}", Input)
            for field in REGISTRATION_FIELDS
        }
        for widget in inputs.values():
            widget.remove_class("-invalid")
        values = {field: widget.value for field, widget in inputs.items()}

        try:
            customer = await auth.register_customer(**values)
        except ValidationFailure as e:
            for field in e.errors:
                inputs[field].add_class("-invalid")
            first_field = next(iter(e.errors))
            inputs[first_field].focus()
            self.notify(e.message, severity="error")
            return
        except DuplicateIdentityError as e:
            inputs[e.field].add_class("-invalid")
            inputs[e.field].focus()
            self.notify(e.message, severity="error")
            return

        await self.app.push_screen_wait(
            DialogModal(f"Registration successful. Welcome, {customer.name}!")
        )

        self.get_child_by_type(TabbedContent).active = "tab-login"
        self.query_one("#input-login-username", Input).value = customer.username
        input_login_pwd = self.query_one("#input-login-pwd", Input)
        input_login_pwd.value = values["password"]
        input_login_pwd.focus()

        self.notify("Registration successful.")

    @on(Button.Pressed, "#btn-quit")
    def handle_quit_(self) -> None:
        self.app.push_screen(QuitDialogModal())

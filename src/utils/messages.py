from textual.message import Message


class QuitRequestedMessage(Message):
    """
    broadcasted when the app is about to quit
    """

    bubble = True


class UserLogoutMessage(Message):
    """
    broadcasted when the user logs out
    """

    bubble = True


class UserLoginMessage(Message):
    """
    Fired when a user logged in, so the screen can refresh
    """

    bubble = True


class CartChangedMessage(Message):
    """
    Fired when an item is added, edited or removed, or the cart is cleared.
    Triggers a refresh of the cart screen.

    If posted from outside CartScreen, make sure to post at App level
    """

    bubble = True


class NewOrderMessage(Message):
    """
    Fired when a new order is created.
    Listened to by my orders and the admin screens
    """

    bubble = True


class OrderStatusChangedMessage(Message):
    """
    Fired after an order was cancelled or its status was overwritten
    """

    bubble = True

    def __init__(self, order_id: int) -> None:
        super().__init__()
        self.order_id = order_id


class ModeSwitchedMessage(Message):
    """
    fired whenever switch_mode is called
    must be fired from app level
    """

    bubble = True

    def __init__(self, old_mode: str, new_mode: str) -> None:
        super().__init__()
        self.old_mode = old_mode
        self.new_mode = new_mode

"""Reply texts sent to buyers."""

from __future__ import annotations

from typing import Iterable, Mapping, Optional

WELCOME = "Welcome — send your 4-digit school code to begin ordering."
ASK_CODE = "Please send your 4-digit school code to start ordering."
INVALID_CODE = "❌ Invalid school code. Please check and try again."
INVALID_CLASS = "Invalid selection. Please reply with the class number from the list."
ASK_CATEGORY = "What would you like to order?\n\n1. Books\n2. Stationery\n\nReply with 1 or 2."
INVALID_CATEGORY = "Please reply with 1 for Books or 2 for Stationery."
NO_ITEMS_FOR_CLASS = "No items available for your class/category. Please contact support."
INVALID_DELIVERY = "Please reply with 1 for School delivery or 2 for Home delivery."
ASK_ADDRESS = "Please send your complete delivery address."
ASK_CONFIRM = "Type CONFIRM to place your order."
INVALID_CONFIRM = "Type CONFIRM to place your order, or START to begin a new order."
NO_ITEMS_TO_ORDER = "No items available to order. Please contact support."
BROKEN_CONTEXT = "Something went wrong. Please type START and try again."
UNKNOWN_STATE = "Something unexpected happened. Please type START to begin again."


def format_amount(paise: int) -> str:
    return f"₹{paise / 100:.2f}"


def format_charge(paise: int) -> str:
    rupees, rest = divmod(paise, 100)
    return f"₹{rupees}" if rest == 0 else f"₹{rupees}.{rest:02d}"


def class_menu(school_name: str, class_names: Iterable[str]) -> str:
    lines = "\n".join(f"{i}. {name}" for i, name in enumerate(class_names, start=1))
    return (
        f"✅ Code accepted for {school_name}.\n\n"
        f"Select your class:\n{lines or 'No classes found.'}\n\n"
        "Reply with the number."
    )


def delivery_menu(
    items: Iterable[Mapping], school_charge_paise: int, home_charge_paise: int
) -> str:
    preview = "\n".join(
        f"{i}. {item['title']} — {format_amount(item['price_paise'])}"
        for i, item in enumerate(items, start=1)
    )
    return (
        f"Available items:\n{preview}\n\n"
        "Choose delivery:\n"
        f"1. School Delivery - {format_charge(school_charge_paise)}\n"
        f"2. Home Delivery - {format_charge(home_charge_paise)}\n\n"
        "Reply with 1 or 2."
    )


def order_created(order_number: str, total_paise: int, payment_link: Optional[str]) -> str:
    payment = (
        f"Payment link: {payment_link}" if payment_link else "Payment link will be sent shortly."
    )
    return f"✅ Order #{order_number} created!\nTotal: {format_amount(total_paise)}\n{payment}"


def order_failed(detail: str) -> str:
    return f"Order failed: {detail}"


def payment_received(order_number: str, total_paise: int) -> str:
    return (
        f"✅ Payment received for Order #{order_number}\n"
        f"Amount: {format_amount(total_paise)}\nThank you!"
    )


def payment_failed(order_number: str) -> str:
    return f"⚠️ Payment failed for Order #{order_number}. Please try again or contact support."


def shipment_created(order_number: str, tracking_id: str) -> str:
    return f"📦 Shipment created for Order #{order_number}\nTracking Number: {tracking_id}"


def out_for_delivery(order_number: str) -> str:
    return f"🚚 Order #{order_number} is on its way."


def delivered(order_number: str) -> str:
    return f"✅ Order #{order_number} has been delivered. Thank you for ordering!"

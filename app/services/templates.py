"""Bilingual (Myanmar / English) message templates for the Viber bot."""

import copy
from typing import Mapping, Optional

from app.schemas.viber import StructuredMessage

MYANMAR = "myanmar"
ENGLISH = "english"
BOTH = "both"
LANGUAGES = (MYANMAR, ENGLISH, BOTH)

BILINGUAL_SEPARATOR = "\n\n"


class TemplateError(ValueError):
    pass


TEMPLATES: dict[str, dict[str, str]] = {
    "welcome": {
        MYANMAR: (
            "ဆေးဆိုင်မှ ကြိုဆိုပါတယ်! 🏪\n\n"
            "ကျေးဇူးပြု၍ အောက်ပါ option များမှ ရွေးချယ်ပါ:\n\n"
            "1️⃣ - ဆေးဝါးများ ရှာဖွေရန်\n"
            "2️⃣ - အမှာစာတင်ရန်\n"
            "3️⃣ - ဆေးညွှန်းပို့ရန်\n"
            "4️⃣ - အကူအညီလိုချင်ပါက\n\n"
            "ဖွင့်ချိန်: နံနက် ၉နာရီ - ည ၉နာရီ"
        ),
        ENGLISH: (
            "Welcome to ရွှေအိုး Pharmacy! 🏪\n\n"
            "Please choose from the following options:\n\n"
            "1️⃣ - Search Medicines\n"
            "2️⃣ - Place Order\n"
            "3️⃣ - Upload Prescription\n"
            "4️⃣ - Need Help\n\n"
            "Open Hours: 9AM - 9PM Daily"
        ),
    },
    # Short greeting sent together with the welcome keyboard
    "welcome_base": {
        MYANMAR: "ဆေးဆိုင်မှ ကြိုဆိုပါတယ်! 🏪\nဖွင့်ချိန်: နံနက် ၉နာရီ - ည ၉နာရီ",
        ENGLISH: "Welcome to ရွှေအိုး Pharmacy! 🏪\nOpen Hours: 9AM - 9PM Daily",
    },
    "order_confirmation": {
        MYANMAR: (
            "အမှာစာ လက်ခံပြီးပါပြီ! ✅\n\n"
            "အမှာစာနံပါတ်: {orderId}\n"
            "စုစုပေါင်းငွေ: {totalAmount} ကျပ်\n"
            "ပို့ဆောင်လိပ်စာ: {deliveryAddress}\n\n"
            "ကျွန်ုပ်တို့က မကြာမီ ဆက်သွယ်ပါမယ်။"
        ),
        ENGLISH: (
            "Order confirmed! ✅\n\n"
            "Order ID: {orderId}\n"
            "Total Amount: {totalAmount} MMK\n"
            "Delivery Address: {deliveryAddress}\n\n"
            "We'll contact you soon."
        ),
    },
    "prescription_received": {
        MYANMAR: (
            "ဆေးညွှန်း လက်ခံပြီးပါပြီ! 📋\n\n"
            "ကျွန်ုပ်တို့ဆေးဝိုင်းမှ စစ်ဆေးပြီး မကြာမီ ပြန်လည်ဆက်သွယ်ပါမယ်။\n\n"
            "ကျေးဇူးတင်ပါတယ်!"
        ),
        ENGLISH: (
            "Prescription received! 📋\n\n"
            "Our pharmacist will review it and contact you soon.\n\n"
            "Thank you!"
        ),
    },
    "help": {
        MYANMAR: (
            "ကျွန်ုပ်တို့ကို ဆက်သွယ်နည်းများ:\n\n"
            "📞 ဖုန်း: 09-XXX-XXX-XXX\n"
            "📧 အီးမေးလ်: info@shweoo-pharmacy.com\n"
            "🕘 ဖွင့်ချိန်: နံနက် ၉နာရီ - ည ၉နာရီ\n"
            "📍 လိပ်စာ: ရန်ကုန်မြို့\n\n"
            "မေးခွန်းများ ရှိပါက လွတ်လပ်စွာ မေးမြန်းနိုင်ပါတယ်!"
        ),
        ENGLISH: (
            "Contact us:\n\n"
            "📞 Phone: 09-XXX-XXX-XXX\n"
            "📧 Email: info@shweoo-pharmacy.com\n"
            "🕘 Hours: 9AM - 9PM Daily\n"
            "📍 Address: Yangon\n\n"
            "Feel free to ask any questions!"
        ),
    },
    "default_reply": {
        MYANMAR: "နားမလည်ပါဘူး။ ကျေးဇူးပြု၍ အပေါ်က ရွေးချယ်စရာများထဲမှ တစ်ခုကို ရွေးပါ သို့မဟုတ် မေးခွန်းမေးပါ။",
        ENGLISH: "Sorry, I didn't understand. Please choose one of the options above or ask a question.",
    },
    "search_medicines_reply": {
        MYANMAR: "ဆေးဝါးရှာဖွေမှုအတွက် ဘာဆေးရှာချင်ပါသလဲ?",
        ENGLISH: "Which medicine would you like to search for?",
    },
    "place_order_reply": {
        MYANMAR: "အမှာစာတင်ရန်အတွက် ဘာတွေ လိုအပ်ပါသလဲ? စာရင်းပြုစုပေးပါ။",
        ENGLISH: "What would you like to order? Please send us your list.",
    },
    "upload_prescription_reply": {
        MYANMAR: "ဆေးညွှန်းပုံကို ပို့ပေးနိုင်ပါတယ်။",
        ENGLISH: "You can send us a photo of your prescription.",
    },
    "need_help_reply": {
        MYANMAR: "မည်သို့ ကူညီပေးရမလဲ? ကျေးဇူးပြု၍ မေးခွန်းမေးနိုင်ပါတယ်။",
        ENGLISH: "How can we help you? Feel free to ask any question.",
    },
}

# status-keyed templates: (per-language map, fallback status)
STATUS_TEMPLATES: dict[str, tuple[dict[str, dict[str, str]], str]] = {
    "order_status_update": (
        {
            MYANMAR: {
                "confirmed": "အမှာစာကို အတည်ပြုပြီးပါပြီ! ✅\nအမှာစာနံပါတ်: {orderId}\nကျွန်ုပ်တို့က ပြင်ဆင်နေပါပြီ။",
                "preparing": "အမှာစာကို ပြင်ဆင်နေပါပြီ! 🔄\nအမှာစာနံပါတ်: {orderId}",
                "ready": "အမှာစာ ပြင်ဆင်ပြီးပါပြီ! 📦\nအမှာစာနံပါတ်: {orderId}\nပို့ဆောင်ရန် အသင့်ပါ။",
                "delivered": "အမှာစာ ပို့ဆောင်ပြီးပါပြီ! 🚚✅\nအမှာစာနံပါတ်: {orderId}\nကျေးဇူးတင်ပါတယ်!",
                "cancelled": "အမှာစာကို ပယ်ဖျက်လိုက်ပါပြီ။ ❌\nအမှာစာနံပါတ်: {orderId}",
            },
            ENGLISH: {
                "confirmed": "Order confirmed! ✅\nOrder ID: {orderId}\nWe're preparing your order.",
                "preparing": "Order is being prepared! 🔄\nOrder ID: {orderId}",
                "ready": "Order is ready! 📦\nOrder ID: {orderId}\nReady for delivery.",
                "delivered": "Order delivered successfully! 🚚✅\nOrder ID: {orderId}\nThank you!",
                "cancelled": "Order has been cancelled. ❌\nOrder ID: {orderId}",
            },
        },
        "confirmed",
    ),
    "prescription_status": (
        {
            MYANMAR: {
                "reviewed": "ဆေးညွှန်း စစ်ဆေးပြီးပါပြီ! ✅\nလိုအပ်သော ဆေးများ အရန်ရှိပါတယ်။ အမှာစာတင်နိုင်ပါတယ်။",
                "rejected": "ဆေးညွှန်း ပြန်လည်တင်ပေးရန် လိုအပ်ပါတယ်။ 📋❌\nကျေးဇူးပြု၍ ရှင်းလင်းသော ဓာတ်ပုံ ပြန်ပို့ပေးပါ။",
                "fulfilled": "ဆေးညွှန်း အတိုင်း ဆေးများ ပြင်ဆင်ပြီးပါပြီ! 💊✅",
            },
            ENGLISH: {
                "reviewed": "Prescription reviewed! ✅\nRequired medicines are available. You can place an order.",
                "rejected": "Prescription needs resubmission. 📋❌\nPlease send a clearer image.",
                "fulfilled": "Medicines prepared according to prescription! 💊✅",
            },
        },
        "reviewed",
    ),
}

SEARCH_MEDICINES = "1_SEARCH_MEDICINES"
PLACE_ORDER = "2_PLACE_ORDER"
UPLOAD_PRESCRIPTION = "3_UPLOAD_PRESCRIPTION"
NEED_HELP = "4_NEED_HELP"

COMMAND_REPLIES = {
    SEARCH_MEDICINES: "search_medicines_reply",
    PLACE_ORDER: "place_order_reply",
    UPLOAD_PRESCRIPTION: "upload_prescription_reply",
    NEED_HELP: "need_help_reply",
}


def _keyboard_button(action_body: str, label: str, color: str) -> dict:
    return {
        "Columns": 6,
        "Rows": 1,
        "ActionType": "reply",
        "ActionBody": action_body,
        "Text": f'<font color="#FFFFFF"><b>{label}</b></font>',
        "TextSize": "small",
        "TextVAlign": "middle",
        "TextHAlign": "left",
        "BgColor": color,
    }


WELCOME_KEYBOARD = {
    "Type": "keyboard",
    "Buttons": [
        _keyboard_button(SEARCH_MEDICINES, "1️⃣ ဆေးဝါးများ ရှာဖွေရန်", "#007bff"),
        _keyboard_button(PLACE_ORDER, "2️⃣ အမှာစာတင်ရန်", "#28a745"),
        _keyboard_button(UPLOAD_PRESCRIPTION, "3️⃣ ဆေးညွှန်းပို့ရန်", "#ffc107"),
        _keyboard_button(NEED_HELP, "4️⃣ အကူအညီလိုချင်ပါက", "#dc3545"),
    ],
}


def create_bilingual_message(myanmar_text: str, english_text: str) -> str:
    return f"{myanmar_text}{BILINGUAL_SEPARATOR}{english_text}"


def substitute(text: str, values: Optional[Mapping[str, object]] = None) -> str:
    """Replace ``{name}`` placeholders literally; unknown ones are left as-is."""
    for key, value in (values or {}).items():
        text = text.replace("{" + key + "}", str(value))
    return text


def _check_language(language: str) -> None:
    if language not in LANGUAGES:
        raise TemplateError(f"Unsupported language: {language}")


def _localize(texts: Mapping[str, str], language: str, values: Optional[Mapping[str, object]]) -> str:
    _check_language(language)
    if language == BOTH:
        return create_bilingual_message(
            substitute(texts[MYANMAR], values),
            substitute(texts[ENGLISH], values),
        )
    return substitute(texts[language], values)


def render_template(name: str, language: str = BOTH, values: Optional[Mapping[str, object]] = None) -> str:
    texts = TEMPLATES.get(name)
    if texts is None:
        raise TemplateError(f"Unknown template: {name}")
    return _localize(texts, language, values)


def render_status_template(
    name: str,
    status: str,
    language: str = BOTH,
    values: Optional[Mapping[str, object]] = None,
) -> str:
    """Render a status-keyed template, falling back to its default status."""
    entry = STATUS_TEMPLATES.get(name)
    if entry is None:
        raise TemplateError(f"Unknown status template: {name}")
    by_language, fallback = entry
    texts = {lang: options.get(status) or options[fallback] for lang, options in by_language.items()}
    return _localize(texts, language, values)


def format_order_message(order: Mapping[str, object], language: str = BOTH) -> str:
    total = order.get("total_amount")
    values = {
        "orderId": order.get("id"),
        "totalAmount": f"{total:,}" if isinstance(total, (int, float)) else total,
        "deliveryAddress": order.get("delivery_address"),
    }
    return render_template("order_confirmation", language, values)


def format_order_status_message(order_id: object, status: str, language: str = BOTH) -> str:
    return render_status_template("order_status_update", status, language, {"orderId": order_id})


def format_prescription_status_message(status: str, language: str = BOTH) -> str:
    return render_status_template("prescription_status", status, language)


def get_help_message(language: str = BOTH) -> str:
    return render_template("help", language)


def get_welcome_message(language: str = BOTH) -> str:
    return render_template("welcome", language)


def welcome_keyboard() -> dict:
    return copy.deepcopy(WELCOME_KEYBOARD)


def build_welcome_content(language: str = BOTH) -> StructuredMessage:
    """Short welcome text with the quick-reply keyboard attached."""
    return StructuredMessage(
        type="text",
        text=render_template("welcome_base", language),
        keyboard=welcome_keyboard(),
    )


def reply_for_command(text: Optional[str], language: str = BOTH) -> str:
    """Canned reply for an exact command code; anything else gets the default reply."""
    template_name = COMMAND_REPLIES.get(text or "", "default_reply")
    return render_template(template_name, language)

"""
Language negotiation and the message catalog used for API-generated text.
"""

from typing import Dict, List, Optional, Tuple
import logging

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "en-GB"

SUPPORTED_LANGUAGES = [
    {"code": "en-GB", "name": "English", "native_name": "English", "rtl": False},
    {"code": "es-MX", "name": "Spanish", "native_name": "Español", "rtl": False},
    {"code": "fr-FR", "name": "French", "native_name": "Français", "rtl": False},
    {"code": "de-DE", "name": "German", "native_name": "Deutsch", "rtl": False},
    {"code": "zh-CN", "name": "Chinese", "native_name": "中文", "rtl": False},
    {"code": "ja-JP", "name": "Japanese", "native_name": "日本語", "rtl": False},
    {"code": "ar-SA", "name": "Arabic", "native_name": "العربية", "rtl": True},
]

SUPPORTED_CODES = [lang["code"] for lang in SUPPORTED_LANGUAGES]
RTL_LANGUAGES = {lang["code"] for lang in SUPPORTED_LANGUAGES if lang["rtl"]}

MESSAGES: Dict[str, Dict[str, str]] = {
    "en-GB": {
        "email.new_message.subject": "Inmobi: New message from {sender}",
        "email.new_message.greeting": "Hello {name},",
        "email.new_message.intro": "You have received a new message from {sender} ({role}).",
        "email.new_message.cta": "View Message",
        "role.admin": "Administrator",
        "role.agent": "Real Estate Agent",
        "role.user": "User",
        "notification.new_property": "New property matching your search: {title}",
        "chat.unavailable": "I'm sorry, I'm having trouble connecting to my knowledge base right now. Please try again in a moment.",
    },
    "es-MX": {
        "email.new_message.subject": "Inmobi: Nuevo mensaje de {sender}",
        "email.new_message.greeting": "Hola {name},",
        "email.new_message.intro": "Has recibido un nuevo mensaje de {sender} ({role}).",
        "email.new_message.cta": "Ver mensaje",
        "role.admin": "Administrador",
        "role.agent": "Agente inmobiliario",
        "role.user": "Usuario",
        "notification.new_property": "Nueva propiedad que coincide con tu búsqueda: {title}",
        "chat.unavailable": "Lo siento, tengo problemas para conectarme a mi base de conocimientos. Inténtalo de nuevo en un momento.",
    },
    "fr-FR": {
        "email.new_message.subject": "Inmobi : Nouveau message de {sender}",
        "email.new_message.greeting": "Bonjour {name},",
        "email.new_message.intro": "Vous avez reçu un nouveau message de {sender} ({role}).",
        "email.new_message.cta": "Voir le message",
        "role.admin": "Administrateur",
        "role.agent": "Agent immobilier",
        "role.user": "Utilisateur",
        "notification.new_property": "Nouveau bien correspondant à votre recherche : {title}",
        "chat.unavailable": "Désolé, je n'arrive pas à accéder à ma base de connaissances pour le moment. Veuillez réessayer dans un instant.",
    },
    "de-DE": {
        "email.new_message.subject": "Inmobi: Neue Nachricht von {sender}",
        "email.new_message.greeting": "Hallo {name},",
        "email.new_message.intro": "Sie haben eine neue Nachricht von {sender} ({role}) erhalten.",
        "email.new_message.cta": "Nachricht ansehen",
        "role.admin": "Administrator",
        "role.agent": "Immobilienmakler",
        "role.user": "Benutzer",
        "notification.new_property": "Neue Immobilie passend zu Ihrer Suche: {title}",
        "chat.unavailable": "Entschuldigung, ich kann meine Wissensdatenbank gerade nicht erreichen. Bitte versuchen Sie es gleich noch einmal.",
    },
    "zh-CN": {
        "email.new_message.subject": "Inmobi：来自 {sender} 的新消息",
        "email.new_message.greeting": "{name}，您好：",
        "email.new_message.intro": "您收到了来自 {sender}（{role}）的新消息。",
        "email.new_message.cta": "查看消息",
        "role.admin": "管理员",
        "role.agent": "房地产经纪人",
        "role.user": "用户",
        "notification.new_property": "符合您搜索条件的新房源：{title}",
        "chat.unavailable": "抱歉，我暂时无法连接到知识库，请稍后再试。",
    },
    "ja-JP": {
        "email.new_message.subject": "Inmobi：{sender} さんから新しいメッセージ",
        "email.new_message.greeting": "{name} 様",
        "email.new_message.intro": "{sender}（{role}）から新しいメッセージが届きました。",
        "email.new_message.cta": "メッセージを見る",
        "role.admin": "管理者",
        "role.agent": "不動産エージェント",
        "role.user": "ユーザー",
        "notification.new_property": "検索条件に合う新しい物件：{title}",
        "chat.unavailable": "申し訳ありません。現在ナレッジベースに接続できません。しばらくしてからもう一度お試しください。",
    },
    "ar-SA": {
        "email.new_message.subject": "Inmobi: رسالة جديدة من {sender}",
        "email.new_message.greeting": "مرحباً {name}،",
        "email.new_message.intro": "لقد تلقيت رسالة جديدة من {sender} ({role}).",
        "email.new_message.cta": "عرض الرسالة",
        "role.admin": "مسؤول",
        "role.agent": "وكيل عقاري",
        "role.user": "مستخدم",
        "notification.new_property": "عقار جديد يطابق بحثك: {title}",
        "chat.unavailable": "عذراً، أواجه مشكلة في الاتصال بقاعدة المعرفة الآن. يرجى المحاولة مرة أخرى بعد قليل.",
    },
}


def normalize_language(code: Optional[str]) -> Optional[str]:
    """
    Map a language tag to a supported one.

    Exact tags match case-insensitively; a bare or unknown-region tag such
    as ``es`` or ``es-ES`` falls back to the first supported tag with the
    same base. Returns None when nothing matches.
    """
    if not code:
        return None
    code = code.strip().replace("_", "-")
    if not code:
        return None
    lowered = code.lower()
    for supported in SUPPORTED_CODES:
        if supported.lower() == lowered:
            return supported
    base = lowered.split("-")[0]
    for supported in SUPPORTED_CODES:
        if supported.split("-")[0].lower() == base:
            return supported
    return None


def parse_accept_language(header: Optional[str]) -> List[str]:
    """Language tags from an Accept-Language header, highest q first."""
    if not header:
        return []
    weighted: List[Tuple[float, int, str]] = []
    for position, part in enumerate(header.split(",")):
        pieces = [p.strip() for p in part.split(";")]
        tag = pieces[0]
        if not tag or tag == "*":
            continue
        quality = 1.0
        for param in pieces[1:]:
            if param.startswith("q="):
                try:
                    quality = float(param[2:])
                except ValueError:
                    quality = 0.0
        if quality > 0:
            weighted.append((-quality, position, tag))
    return [tag for _, _, tag in sorted(weighted)]


def negotiate_language(
    explicit: Optional[str] = None,
    user_preference: Optional[str] = None,
    accept_language: Optional[str] = None
) -> str:
    """
    Pick the response language: explicit ``lang`` parameter, then the user's
    stored preference, then Accept-Language, then en-GB.
    """
    for candidate in (explicit, user_preference):
        normalized = normalize_language(candidate)
        if normalized:
            return normalized
    for tag in parse_accept_language(accept_language):
        normalized = normalize_language(tag)
        if normalized:
            return normalized
    return DEFAULT_LANGUAGE


def is_rtl(language: str) -> bool:
    return language in RTL_LANGUAGES


def get_catalog(language: str) -> Dict[str, str]:
    catalog = dict(MESSAGES[DEFAULT_LANGUAGE])
    catalog.update(MESSAGES.get(language, {}))
    return catalog


def translate(key: str, language: str = DEFAULT_LANGUAGE, **params) -> str:
    """Translated message for ``key``, falling back to English and then the key itself."""
    template = MESSAGES.get(language, {}).get(key) or MESSAGES[DEFAULT_LANGUAGE].get(key)
    if template is None:
        logger.warning(f"Missing translation key: {key}")
        return key
    return template.format(**params) if params else template

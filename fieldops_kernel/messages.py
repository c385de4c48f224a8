"""
User-facing message catalog keyed by error code and locale.

Diagnostic text (exception messages, log fields) never reaches users; the
boundary helper looks up the text here.  Every access-code failure maps to
the same generic message so callers cannot learn which codes exist.
"""

DEFAULT_LOCALE = "en"

_ACCESS_CODE_GENERIC = {
    "en": "Invalid credentials or expired code.",
    "pt-BR": "Credenciais inválidas ou código expirado.",
}

_CATALOG: dict[str, dict[str, str]] = {
    "en": {
        "VALIDATION_ERROR": "Some of the information provided is invalid.",
        "NOT_FOUND": "The requested record was not found.",
        "CONFLICT": "This record was changed by another operation. Refresh and try again.",
        "FORBIDDEN": "You do not have permission to perform this action.",
        "REMOTE_ERROR": "Something went wrong. Please try again later.",
        "ACCESS_CODE": _ACCESS_CODE_GENERIC["en"],
    },
    "pt-BR": {
        "VALIDATION_ERROR": "Alguns dados informados são inválidos.",
        "NOT_FOUND": "O registro solicitado não foi encontrado.",
        "CONFLICT": "Este registro foi alterado por outra operação. Atualize e tente novamente.",
        "FORBIDDEN": "Você não tem permissão para realizar esta ação.",
        "REMOTE_ERROR": "Algo deu errado. Tente novamente mais tarde.",
        "ACCESS_CODE": _ACCESS_CODE_GENERIC["pt-BR"],
    },
}

SUPPORTED_LOCALES = frozenset(_CATALOG)


def user_message(code: str | None, locale: str = DEFAULT_LOCALE) -> str:
    """Return the user-facing text for an error code in ``locale``."""
    messages = _CATALOG.get(locale, _CATALOG[DEFAULT_LOCALE])
    return messages.get(code or "REMOTE_ERROR", messages["REMOTE_ERROR"])


def access_code_message(locale: str = DEFAULT_LOCALE) -> str:
    """The single message shown for every failed redemption."""
    return user_message("ACCESS_CODE", locale)

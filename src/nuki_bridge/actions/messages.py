"""
Localized message catalog keyed by message key.
"""

MESSAGES: dict[str, dict[str, str]] = {
    "en": {
        "goal-already-active": "The device is already in the requested state.",
        "action-succeeded": "The action was carried out.",
        "command-accepted": "The command was accepted by the device.",
        "motor-blocked": "The lock motor is blocked.",
        "goal-not-reached": "The device did not reach the requested state.",
        "device-offline": "The device is not reachable.",
        "command-failed": "The command could not be delivered to the device.",
        "configuration-missing": "Required configuration is missing.",
        "device-type-mismatch": "The configured device does not support this action.",
        "unknown-operation": "Unknown operation.",
        "method-not-allowed": "This operation does not accept that request method.",
        "status-ok": "Current device status.",
        "internal-error": "An unexpected error occurred.",
    },
    "de": {
        "goal-already-active": "Das Gerät befindet sich bereits im gewünschten Zustand.",
        "action-succeeded": "Die Aktion wurde ausgeführt.",
        "command-accepted": "Der Befehl wurde vom Gerät angenommen.",
        "motor-blocked": "Der Motor des Schlosses ist blockiert.",
        "goal-not-reached": "Das Gerät hat den gewünschten Zustand nicht erreicht.",
        "device-offline": "Das Gerät ist nicht erreichbar.",
        "command-failed": "Der Befehl konnte nicht an das Gerät übermittelt werden.",
        "configuration-missing": "Erforderliche Konfiguration fehlt.",
        "device-type-mismatch": "Das konfigurierte Gerät unterstützt diese Aktion nicht.",
        "unknown-operation": "Unbekannte Operation.",
        "method-not-allowed": "Diese Operation akzeptiert diese Anfragemethode nicht.",
        "status-ok": "Aktueller Gerätestatus.",
        "internal-error": "Ein unerwarteter Fehler ist aufgetreten.",
    },
}

DEFAULT_LOCALE = "en"


class MessageCatalog:
    """Looks up message text; unknown locales fall back to English, unknown keys to the key."""

    def __init__(self, locale: str = DEFAULT_LOCALE):
        self.locale = locale if locale in MESSAGES else DEFAULT_LOCALE

    def get(self, key: str) -> str:
        return MESSAGES[self.locale].get(key) or MESSAGES[DEFAULT_LOCALE].get(key, key)

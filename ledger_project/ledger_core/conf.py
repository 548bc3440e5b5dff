"""
Ledger configuration.

Values come from the ``LEDGER`` dict in Django settings, merged over
``DEFAULTS``. Read them through ``ledger_settings`` so test overrides
(``override_settings(LEDGER=...)``) are picked up.
"""
from enum import Enum

from django.conf import settings


class WellKnownAccount(str, Enum):
    """Symbolic chart-of-accounts targets the posting rules rely on."""

    AR = "AR"
    AP = "AP"
    TAX = "TAX"
    REVENUE = "REVENUE"
    EXPENSE = "EXPENSE"
    BANK = "BANK"
    OPENING_BALANCE_EQUITY = "OPENING_BALANCE_EQUITY"


DEFAULT_GL_CODES = {
    WellKnownAccount.AR: "1200",
    WellKnownAccount.AP: "2000",
    WellKnownAccount.TAX: "2300",
    WellKnownAccount.REVENUE: "4000",
    WellKnownAccount.EXPENSE: "5990",
    WellKnownAccount.BANK: "1100",
    WellKnownAccount.OPENING_BALANCE_EQUITY: "3300",
}

DEFAULTS = {
    "GL_CODES": {},
    "ENTRY_NUMBER_PREFIX": "JE-",
    "ENTRY_NUMBER_PADDING": 3,
    "REPORT_CACHE_INVALIDATOR": "ledger_core.cache.CeleryReportCacheInvalidator",
    "REPORT_CACHE_PATTERN": "report:{tenant_id}:*",
}


class LedgerSettings:
    def __getattr__(self, name):
        if name not in DEFAULTS:
            raise AttributeError(name)
        user = getattr(settings, "LEDGER", {}) or {}
        return user.get(name, DEFAULTS[name])

    def gl_codes(self, overrides=None):
        """
        Well-known account → code mapping.
        Precedence: call-site overrides, then settings, then defaults.
        Keys may be ``WellKnownAccount`` members or their names.
        """
        codes = dict(DEFAULT_GL_CODES)
        for source in (self.GL_CODES, overrides or {}):
            for key, code in source.items():
                codes[WellKnownAccount(key)] = str(code)
        return codes


ledger_settings = LedgerSettings()

import django
from django.conf import settings


def pytest_configure(config):
    if settings.configured:
        return
    settings.configure(
        DEBUG=False,
        USE_TZ=True,
        TIME_ZONE="UTC",
        INSTALLED_APPS=[],
        DATABASES={},
        SHIPPING={
            "REFERENCE_CURRENCY": "GBP",
            "FX_MID_RATES": {
                "USD": {"GBP": "0.75"},
                "EUR": {"GBP": "0.85"},
            },
        },
    )
    django.setup()

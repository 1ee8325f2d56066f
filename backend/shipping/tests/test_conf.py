import os
from unittest.mock import patch

from django.test import SimpleTestCase, override_settings

from .. import conf
from ..dataclasses import Money


class EngineSettingsTests(SimpleTestCase):

    @override_settings(SHIPPING={})
    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            self.assertEqual(conf.get_engine_settings(), conf.DEFAULTS)
        self.assertEqual(conf.reference_currency(), "GBP")
        self.assertIsNone(conf.discount_threshold())
        self.assertEqual(conf.quote_max_workers(), 1)

    @override_settings(SHIPPING={"REFERENCE_CURRENCY": "eur", "QUOTE_MAX_WORKERS": 4})
    def test_django_settings_override_defaults(self):
        self.assertEqual(conf.reference_currency(), "EUR")
        self.assertEqual(conf.quote_max_workers(), 4)

    @override_settings(SHIPPING={"DISCOUNT_THRESHOLD": {"amount": "50", "currency": "usd"}})
    def test_discount_threshold_from_dict(self):
        self.assertEqual(conf.discount_threshold(), Money("50.00", "USD"))

    @override_settings(SHIPPING={"DISCOUNT_THRESHOLD": Money("75.00", "GBP")})
    def test_discount_threshold_from_money(self):
        self.assertEqual(conf.discount_threshold(), Money("75.00", "GBP"))

    @override_settings(SHIPPING={"UNKNOWN_KEY": True})
    def test_unknown_keys_are_ignored(self):
        with self.assertLogs("shipping.conf", level="WARNING") as logs:
            engine_settings = conf.get_engine_settings()
        self.assertNotIn("UNKNOWN_KEY", engine_settings)
        self.assertIn("UNKNOWN_KEY", logs.output[0])

    @override_settings(SHIPPING={})
    def test_env_mid_rates(self):
        with patch.dict(os.environ, {"FX_MID_RATES": '{"USD": {"GBP": 0.8}}'}):
            self.assertEqual(conf.fx_mid_rates(), {"USD": {"GBP": 0.8}})

    @override_settings(SHIPPING={"FX_MID_RATES": {"EUR": {"GBP": "0.85"}}})
    def test_django_settings_win_over_env(self):
        with patch.dict(os.environ, {"FX_MID_RATES": '{"USD": {"GBP": 0.8}}'}):
            self.assertEqual(conf.fx_mid_rates(), {"EUR": {"GBP": "0.85"}})

    @override_settings(SHIPPING={})
    def test_invalid_env_mid_rates(self):
        with patch.dict(os.environ, {"FX_MID_RATES": "not json"}):
            with self.assertLogs("shipping.conf", level="ERROR"):
                self.assertEqual(conf.fx_mid_rates(), {})

    @override_settings(SHIPPING={})
    def test_env_mid_rates_must_be_object(self):
        with patch.dict(os.environ, {"FX_MID_RATES": "[1, 2]"}):
            self.assertEqual(conf.fx_mid_rates(), {})

import unittest

from portfolio_treemap.schemas.holding import Holding
from portfolio_treemap.schemas.quote import Quote
from portfolio_treemap.services.portfolio_view import (
    build_display_data,
    calculate_summary,
    format_number,
    get_valuation,
    price_change_class,
)


def _quote(symbol, price, change=0.0, name=None):
    return Quote(symbol=symbol, name=name or symbol, price=price, change_percent=change, updated_at="t")


class PortfolioViewTest(unittest.TestCase):
    def setUp(self):
        self.holdings = [
            Holding(symbol="AAPL", quantity=2),
            Holding(symbol="7203.T", quantity=10),
            Holding(symbol="MSFT", quantity=1),
        ]
        self.quotes = {
            "AAPL": _quote("AAPL", 110.0, 10.0, "Apple"),
            "7203.T": _quote("7203.T", 2000.0, 0.0, "Toyota"),
        }

    def test_summary_skips_symbols_without_quotes(self):
        summary = calculate_summary(self.holdings, self.quotes)

        self.assertAlmostEqual(summary.total_valuation, 220.0 + 20000.0)
        self.assertAlmostEqual(summary.total_change_amount, 20.0)
        self.assertAlmostEqual(summary.total_change_percent, 20.0 / 20200.0 * 100)

    def test_summary_of_empty_portfolio_is_zero(self):
        summary = calculate_summary([], {})

        self.assertEqual(summary.total_valuation, 0)
        self.assertEqual(summary.total_change_percent, 0)

    def test_summary_ignores_quotes_without_price(self):
        quotes = {"AAPL": _quote("AAPL", None)}

        self.assertEqual(calculate_summary(self.holdings, quotes).total_valuation, 0)

    def test_display_data_only_priced_rows(self):
        rows = build_display_data(self.holdings, self.quotes)

        self.assertEqual([r.symbol for r in rows], ["AAPL", "7203.T"])
        self.assertEqual(rows[0].name, "Apple")
        self.assertAlmostEqual(rows[0].valuation, 220.0)
        self.assertEqual(rows[0].change, 10.0)

    def test_display_rows_carry_formatted_valuation_and_change_class(self):
        quotes = dict(self.quotes, MSFT=_quote("MSFT", 1234.5, -0.4))

        rows = build_display_data(self.holdings, quotes)

        self.assertEqual([r.valuation_text for r in rows], ["220", "20,000", "1,235"])
        self.assertEqual([r.change_class for r in rows], ["text-up", "", "text-down"])

    def test_valuation(self):
        self.assertAlmostEqual(get_valuation(self.holdings[1], self.quotes), 20000.0)
        self.assertIsNone(get_valuation(self.holdings[2], self.quotes))

    def test_format_number(self):
        self.assertEqual(format_number(1234567.5), "1,234,568")
        self.assertEqual(format_number(999.4), "999")
        self.assertEqual(format_number(-2.5), "-2")
        self.assertEqual(format_number(-1234.6), "-1,235")

    def test_price_change_class(self):
        self.assertEqual(price_change_class(1.2), "text-up")
        self.assertEqual(price_change_class(-0.1), "text-down")
        self.assertEqual(price_change_class(0), "")
        self.assertEqual(price_change_class(None), "")


if __name__ == "__main__":
    unittest.main()

import unittest

from portfolio_treemap.schemas.holding import Holding
from portfolio_treemap.services import state_codec
from portfolio_treemap.services.location import InMemoryLocation, Location
from portfolio_treemap.services.state_persistence import StatePersistence

BASE = "/portfolio-treemap/"


class StatePersistenceTest(unittest.TestCase):
    def setUp(self):
        self.location = InMemoryLocation(BASE)
        self.persistence = StatePersistence(self.location, base_path=BASE, query_param="p")
        self.holdings = [
            Holding(symbol="AAPL", quantity=3),
            Holding(symbol="7203.T", quantity=5),
        ]

    def test_write_then_read_round_trips(self):
        self.persistence.write(self.holdings)

        self.assertTrue(self.location.pathname.startswith(BASE))
        self.assertEqual(self.persistence.read(), self.holdings)

    def test_write_empty_resets_to_base_and_reads_none(self):
        self.persistence.write(self.holdings)
        self.persistence.write([])

        self.assertEqual(self.location.pathname, BASE)
        self.assertIsNone(self.persistence.read())

    def test_write_replaces_history_entry(self):
        self.persistence.write(self.holdings)
        self.persistence.write(self.holdings[:1])

        self.assertEqual(self.location.history_length, 1)
        self.assertEqual(self.location.replace_count, 2)

    def test_in_memory_location_implements_location_interface(self):
        declared = {name for name in vars(Location) if not name.startswith("_")}

        self.assertIn("navigate", declared)
        for name in declared:
            self.assertTrue(callable(getattr(InMemoryLocation, name)) or name == "pathname", name)

    def test_query_param_is_read_and_canonicalized(self):
        token = state_codec.encode(self.holdings)
        self.location.navigate(BASE, f"p={token}")

        self.assertEqual(self.persistence.read(), self.holdings)
        self.assertEqual(self.location.pathname, f"{BASE}{token}")
        self.assertIsNone(self.location.query_param("p"))
        self.assertEqual(self.location.search, "")

    def test_query_param_with_raw_plus_survives_form_decoding(self):
        for i in range(40):
            holdings = [Holding(symbol=f"{2000 + i * 11}.T", quantity=10 + i), Holding(symbol="MSFT", quantity=i + 1)]
            canonical = state_codec.encode(holdings)
            location = InMemoryLocation("/portfolio-treemap/", f"p={canonical.replace('_', '+')}")
            persistence = StatePersistence(location, base_path=BASE)

            self.assertEqual(persistence.read(), holdings)
            self.assertEqual(location.pathname, f"{BASE}{canonical}")

    def test_invalid_query_param_falls_back_to_path(self):
        token = state_codec.encode(self.holdings)
        self.location.navigate(f"{BASE}{token}", "p=garbage!!!")

        self.assertEqual(self.persistence.read(), self.holdings)
        self.assertEqual(self.location.replace_count, 0)

    def test_index_html_and_bare_base_mean_no_state(self):
        self.location.navigate(f"{BASE}index.html")
        self.assertIsNone(self.persistence.read())

        self.location.navigate(BASE)
        self.assertIsNone(self.persistence.read())

    def test_path_outside_base_means_no_state(self):
        token = state_codec.encode(self.holdings)
        self.location.navigate(f"/elsewhere/{token}")

        self.assertIsNone(self.persistence.read())

    def test_undecodable_path_reads_none(self):
        self.location.navigate(f"{BASE}not-a-valid-token!!!")

        self.assertIsNone(self.persistence.read())

    def test_percent20_mangled_path_is_restored(self):
        for i in range(40):
            holdings = [Holding(symbol=f"{3000 + i * 13}.T", quantity=i + 2)]
            token = state_codec.encode(holdings).replace("_", "%20")
            self.location.navigate(f"{BASE}{token}")

            self.assertEqual(self.persistence.read(), holdings)

    def test_custom_base_and_param(self):
        location = InMemoryLocation.from_url("https://example.com/app/?state=" + state_codec.encode(self.holdings))
        persistence = StatePersistence(location, base_path="/app/", query_param="state")

        self.assertEqual(persistence.read(), self.holdings)
        self.assertTrue(location.href("https://example.com").startswith("https://example.com/app/"))


if __name__ == "__main__":
    unittest.main()

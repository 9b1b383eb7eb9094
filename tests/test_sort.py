"""
Tests for product ordering and Turkish-aware name collation.
"""
from catalog.sort import collation_key, sort_products, turkish_compare
from fakes import make_product


def names(products):
    return [p.name for p in products]


class TestCollation:

    def test_natural_numbers(self):
        assert turkish_compare("Model 2", "Model 10") < 0
        assert turkish_compare("Model 10", "Model 2") > 0

    def test_case_insensitive(self):
        assert turkish_compare("apple", "Banana") < 0
        assert turkish_compare("ZETA", "zeta") == 0

    def test_foreign_accents_ignored(self):
        assert collation_key("Älfa") == collation_key("alfa")

    def test_turkish_letters_follow_base_letter(self):
        assert turkish_compare("Cuma", "Çanta") < 0
        assert turkish_compare("Çanta", "Dolap") < 0
        assert turkish_compare("Onur", "Ördek") < 0
        assert turkish_compare("Ördek", "Pembe") < 0

    def test_dotless_i_between_h_and_i(self):
        assert turkish_compare("hz", "ılık") < 0
        assert turkish_compare("ılık", "ilik") < 0

    def test_turkish_capital_i(self):
        # I lowercases to ı, İ to i
        assert turkish_compare("Istanbul", "İzmir") < 0
        assert turkish_compare("Hatay", "Istanbul") < 0


class TestAlphabetical:

    def test_default_order(self):
        products = [
            make_product(id="1", name="Zeta"),
            make_product(id="2", name="Model 10"),
            make_product(id="3", name="Älfa"),
            make_product(id="4", name="Model 2"),
        ]
        assert names(sort_products(products)) == ["Älfa", "Model 2", "Model 10", "Zeta"]

    def test_unknown_option_falls_back(self):
        products = [make_product(id="1", name="b"), make_product(id="2", name="A")]
        assert names(sort_products(products, "bogus")) == ["A", "b"]

    def test_returns_copy(self):
        products = [make_product(id="1", name="b"), make_product(id="2", name="a")]
        sort_products(products)
        assert names(products) == ["b", "a"]

    def test_injectable_comparator(self):
        def plain(a, b):
            return (a > b) - (a < b)

        products = [make_product(id="1", name="b"), make_product(id="2", name="B")]
        # plain code-point order puts uppercase first
        assert names(sort_products(products, compare=plain)) == ["B", "b"]

    def test_same_name_ordered_by_id(self):
        products = [make_product(id="2", name="Same"), make_product(id="1", name="Same")]
        assert [p.id for p in sort_products(products)] == ["1", "2"]


class TestPriceSort:

    def test_ascending_and_descending(self):
        products = [
            make_product(id="1", name="A", price=300),
            make_product(id="2", name="B", price=100),
            make_product(id="3", name="C", price=200),
        ]
        assert [p.price for p in sort_products(products, "price-asc")] == [100, 200, 300]
        assert [p.price for p in sort_products(products, "price-desc")] == [300, 200, 100]

    def test_ties_fall_back_to_name(self):
        products = [
            make_product(id="1", name="Zulu", price=100),
            make_product(id="2", name="Alpha", price=100),
            make_product(id="3", name="Mike", price=50),
        ]
        assert names(sort_products(products, "price-asc")) == ["Mike", "Alpha", "Zulu"]
        assert names(sort_products(products, "price-desc")) == ["Alpha", "Zulu", "Mike"]


class TestRatingSort:

    def rated(self):
        return [
            make_product(id="1", name="Alpha", rating=4.5),
            make_product(id="2", name="NoRating1"),
            make_product(id="3", name="Beta", rating=4.5),
            make_product(id="4", name="NoRating0", rating=0),
            make_product(id="5", name="Gamma", rating=4.7),
        ]

    def test_desc_missing_last(self):
        result = sort_products(self.rated(), "rating-desc")
        assert names(result) == ["Gamma", "Alpha", "Beta", "NoRating0", "NoRating1"]

    def test_asc_missing_still_last(self):
        result = sort_products(self.rated(), "rating-asc")
        assert names(result) == ["NoRating0", "Alpha", "Beta", "Gamma", "NoRating1"]

    def test_missing_ratings_alphabetical_among_themselves(self):
        products = [
            make_product(id="1", name="Yankee"),
            make_product(id="2", name="Xray"),
            make_product(id="3", name="Kilo", rating=1),
        ]
        for option in ("rating-asc", "rating-desc"):
            assert names(sort_products(products, option)) == ["Kilo", "Xray", "Yankee"]

"""Catalog service behaviour against a real (SQLite) session."""

from decimal import Decimal

import pytest
from sqlalchemy import select

from backoffice.api.schemas.product import ProductUpdate
from backoffice.core.config import Settings
from backoffice.core.exceptions import ConflictError, NotFoundError, ValidationError
from backoffice.db.models.product import Product
from backoffice.services.catalog_service import CatalogService
from backoffice.stores.catalog_store import CatalogStore, ProductFilters
from tests.factories import make_product


def _seed(catalog: CatalogService, count: int, **overrides) -> list[str]:
    return [
        catalog.create_product(make_product(name=f"Item {i:02d}", **overrides)).product_code
        for i in range(count)
    ]


class TestCreateProduct:

    def test_round_trips_through_get(self, catalog):
        draft = make_product(name="Espresso Beans", unit="kg", tax_rate=Decimal("7.5"))
        created = catalog.create_product(draft)

        stored = catalog.get_product(created.product_code)
        assert stored.name == "Espresso Beans"
        assert stored.unit == "kg"
        assert stored.import_price == Decimal("5.00")
        assert stored.selling_price == Decimal("10.00")
        assert stored.tax_rate == Decimal("7.50")
        assert stored.is_active is True

    def test_assigns_sequential_codes(self, catalog):
        first = catalog.create_product(make_product())
        second = catalog.create_product(make_product())
        assert first.product_code == "P000001"
        assert second.product_code == "P000002"

    def test_trims_text_fields(self, catalog):
        product = catalog.create_product(make_product(name="  Mug ", unit=" pcs "))
        assert product.name == "Mug"
        assert product.unit == "pcs"

    def test_codes_are_not_reused_after_delete(self, catalog):
        first = catalog.create_product(make_product())
        catalog.delete_product(first.product_code)
        second = catalog.create_product(make_product())
        assert second.product_code != first.product_code


class TestCreateProductValidation:

    @pytest.mark.parametrize(
        "overrides",
        [
            {"selling_price": Decimal("5.00")},
            {"selling_price": Decimal("4.00")},
            {"tax_rate": Decimal("-1")},
            {"tax_rate": Decimal("100.5")},
            {"tax_rate": Decimal("100.004")},
            {"import_price": Decimal("-0.004")},
            {"selling_price": Decimal("10.005")},
            {"name": ""},
            {"unit": "   "},
        ],
    )
    def test_rejects_invalid_drafts(self, catalog, db_session, overrides):
        with pytest.raises(ValidationError):
            catalog.create_product(make_product(**overrides))
        assert db_session.scalar(select(Product).limit(1)) is None

    def test_failed_create_does_not_consume_a_code(self, catalog):
        with pytest.raises(ValidationError):
            catalog.create_product(make_product(tax_rate=Decimal("200")))
        assert catalog.create_product(make_product()).product_code == "P000001"

    def test_client_code_rejected_by_default(self, catalog):
        with pytest.raises(ValidationError, match="assigned by the server"):
            catalog.create_product(make_product(product_code="SKU-1"))


class TestClientAssignedCodes:

    @pytest.fixture
    def open_catalog(self, db_session):
        settings = Settings(allow_client_product_codes=True)
        return CatalogService(CatalogStore(db_session), settings)

    def test_uses_supplied_code(self, open_catalog):
        product = open_catalog.create_product(make_product(product_code="SKU-1"))
        assert product.product_code == "SKU-1"

    def test_duplicate_code_conflicts(self, open_catalog):
        open_catalog.create_product(make_product(product_code="SKU-1"))
        with pytest.raises(ConflictError):
            open_catalog.create_product(make_product(product_code="SKU-1"))

    def test_deleted_code_still_conflicts(self, open_catalog):
        open_catalog.create_product(make_product(product_code="SKU-1"))
        open_catalog.delete_product("SKU-1")
        with pytest.raises(ConflictError):
            open_catalog.create_product(make_product(product_code="SKU-1"))

    def test_generator_skips_taken_codes(self, open_catalog):
        open_catalog.create_product(make_product(product_code="P000001"))
        generated = open_catalog.create_product(make_product())
        assert generated.product_code == "P000002"


class TestUpdateProduct:

    def test_partial_update_keeps_other_fields(self, catalog):
        code = catalog.create_product(make_product()).product_code
        updated = catalog.update_product(code, ProductUpdate(name="Gadget"))
        assert updated.name == "Gadget"
        assert updated.selling_price == Decimal("10.00")

    def test_full_update(self, catalog):
        code = catalog.create_product(make_product()).product_code
        updated = catalog.update_product(
            code,
            ProductUpdate(
                product_code=code,
                name="Gadget",
                unit="box",
                import_price=Decimal("20"),
                selling_price=Decimal("30"),
                tax_rate=Decimal("0"),
                is_active=False,
            ),
        )
        assert (updated.unit, updated.import_price, updated.is_active) == (
            "box",
            Decimal("20.00"),
            False,
        )

    def test_merged_record_is_validated(self, catalog):
        code = catalog.create_product(make_product()).product_code
        # Selling price alone would be fine, but not against the stored import price
        with pytest.raises(ValidationError, match="greater than import price"):
            catalog.update_product(code, ProductUpdate(import_price=Decimal("12")))
        assert catalog.get_product(code).import_price == Decimal("5.00")

    def test_invalid_update_writes_nothing(self, catalog):
        code = catalog.create_product(make_product()).product_code
        with pytest.raises(ValidationError):
            catalog.update_product(
                code, ProductUpdate(name="Renamed", tax_rate=Decimal("101"))
            )
        assert catalog.get_product(code).name == "Widget"

    def test_tax_rate_is_checked_before_rounding(self, catalog):
        code = catalog.create_product(make_product()).product_code
        with pytest.raises(ValidationError, match="between 0 and 100"):
            catalog.update_product(code, ProductUpdate(tax_rate=Decimal("100.004")))
        assert catalog.get_product(code).tax_rate == Decimal("10.00")

    def test_unknown_code(self, catalog):
        with pytest.raises(NotFoundError):
            catalog.update_product("P999999", ProductUpdate(name="Ghost"))

    def test_code_is_immutable(self, catalog):
        code = catalog.create_product(make_product()).product_code
        with pytest.raises(ValidationError, match="cannot be changed"):
            catalog.update_product(code, ProductUpdate(product_code="OTHER"))


class TestUpdateProductStatus:

    def test_toggles_active_flag(self, catalog):
        code = catalog.create_product(make_product()).product_code
        assert catalog.update_product_status(code, False) is True
        assert catalog.get_product(code).is_active is False
        catalog.update_product_status(code, True)
        assert catalog.get_product(code).is_active is True

    def test_unknown_code(self, catalog):
        with pytest.raises(NotFoundError):
            catalog.update_product_status("P999999", True)

    def test_deleted_product(self, catalog):
        code = catalog.create_product(make_product()).product_code
        catalog.delete_product(code)
        with pytest.raises(NotFoundError):
            catalog.update_product_status(code, False)


class TestDeleteProduct:

    def test_deleted_product_disappears_everywhere(self, catalog):
        code = catalog.create_product(make_product(name="Doomed")).product_code
        catalog.delete_product(code)

        with pytest.raises(NotFoundError):
            catalog.get_product(code)
        assert code not in [p.product_code for p in catalog.list_products().items]
        assert catalog.search_products("Doomed") == []
        assert catalog.search_products(code, include_inactive=True) == []

    def test_missing_code(self, catalog):
        with pytest.raises(NotFoundError):
            catalog.delete_product("P999999")

    def test_second_delete_is_not_found(self, catalog):
        code = catalog.create_product(make_product()).product_code
        catalog.delete_product(code)
        with pytest.raises(NotFoundError):
            catalog.delete_product(code)


class TestBulkDelete:

    def test_skips_missing_codes(self, catalog):
        a, c = _seed(catalog, 2)
        result = catalog.delete_products([a, "B-MISSING", c])

        assert result.deleted == [a, c]
        assert result.missing == ["B-MISSING"]
        assert result.failed == []
        assert catalog.list_products().total == 0

    def test_duplicates_are_deleted_once(self, catalog):
        (a,) = _seed(catalog, 1)
        result = catalog.delete_products([a, a])
        assert result.deleted == [a]
        assert result.missing == []

    def test_empty_list(self, catalog):
        result = catalog.delete_products([])
        assert (result.deleted, result.missing) == ([], [])


class TestListProducts:

    def test_second_page_holds_the_remainder(self, catalog):
        _seed(catalog, 15)
        page = catalog.list_products(page=2, page_size=10)
        assert len(page.items) == 5
        assert page.total == 15
        assert page.total_pages == 2

    def test_page_past_the_end_is_empty(self, catalog):
        _seed(catalog, 3)
        page = catalog.list_products(page=5, page_size=10)
        assert page.items == []
        assert page.total == 3

    def test_newest_first(self, catalog):
        codes = _seed(catalog, 3)
        listed = [p.product_code for p in catalog.list_products().items]
        assert listed == list(reversed(codes))

    def test_inactive_hidden_by_default(self, catalog):
        active, inactive = _seed(catalog, 2)
        catalog.update_product_status(inactive, False)

        assert [p.product_code for p in catalog.list_products().items] == [active]
        everything = catalog.list_products(filters=ProductFilters(status="all"))
        assert everything.total == 2
        only_inactive = catalog.list_products(filters=ProductFilters(status="inactive"))
        assert [p.product_code for p in only_inactive.items] == [inactive]

    def test_name_filter(self, catalog):
        catalog.create_product(make_product(name="Blue Mug"))
        catalog.create_product(make_product(name="Red Plate"))
        page = catalog.list_products(filters=ProductFilters(name="mug"))
        assert [p.name for p in page.items] == ["Blue Mug"]

    def test_name_filter_treats_wildcards_literally(self, catalog):
        catalog.create_product(make_product(name="Plain Widget"))
        catalog.create_product(make_product(name="50% off"))
        page = catalog.list_products(filters=ProductFilters(name="%"))
        assert [p.name for p in page.items] == ["50% off"]
        assert page.total == 1

    def test_uses_default_page_size(self, catalog, settings):
        _seed(catalog, settings.default_page_size + 1)
        assert len(catalog.list_products().items) == settings.default_page_size

    @pytest.mark.parametrize(
        "page,page_size,field",
        [(0, 10, "page"), (-1, 10, "page"), (1, 0, "pageSize"), (1, 100000, "pageSize")],
    )
    def test_rejects_bad_paging(self, catalog, page, page_size, field):
        with pytest.raises(ValidationError) as exc_info:
            catalog.list_products(page=page, page_size=page_size)
        assert [e.field for e in exc_info.value.errors] == [field]


class TestSearchProducts:

    def test_case_insensitive_name_match_ordered_by_name(self, catalog):
        catalog.create_product(make_product(name="Green Tea"))
        catalog.create_product(make_product(name="black tea"))
        catalog.create_product(make_product(name="Coffee"))

        found = catalog.search_products("TEA")
        assert [p.name for p in found] == ["black tea", "Green Tea"]

    def test_matches_product_code(self, catalog):
        code = catalog.create_product(make_product(name="Coffee")).product_code
        assert [p.product_code for p in catalog.search_products(code.lower())] == [code]

    def test_blank_term_matches_all_active(self, catalog):
        _seed(catalog, 3)
        assert len(catalog.search_products("")) == 3
        assert len(catalog.search_products(None)) == 3
        assert len(catalog.search_products("   ")) == 3

    def test_wildcard_characters_match_literally(self, catalog):
        catalog.create_product(make_product(name="Plain Widget"))
        catalog.create_product(make_product(name="50% off"))

        assert [p.name for p in catalog.search_products("%")] == ["50% off"]
        assert catalog.search_products("_") == []

    def test_inactive_excluded_unless_requested(self, catalog):
        code = catalog.create_product(make_product(name="Old Tea")).product_code
        catalog.update_product_status(code, False)

        assert catalog.search_products("tea") == []
        assert len(catalog.search_products("tea", include_inactive=True)) == 1

    def test_inactive_product_still_addressable_by_code(self, catalog):
        code = catalog.create_product(make_product(is_active=False)).product_code
        assert catalog.get_product(code).is_active is False


class TestUpdateDeleteRace:
    """Update and delete on one code never leave a torn record."""

    def test_delete_wins(self, catalog):
        code = catalog.create_product(make_product()).product_code
        catalog.delete_product(code)
        with pytest.raises(NotFoundError):
            catalog.update_product(code, ProductUpdate(name="Too late"))
        with pytest.raises(NotFoundError):
            catalog.get_product(code)

    def test_update_then_delete(self, catalog):
        code = catalog.create_product(make_product()).product_code
        updated = catalog.update_product(code, ProductUpdate(name="Renamed"))
        assert updated.name == "Renamed"
        catalog.delete_product(code)
        with pytest.raises(NotFoundError):
            catalog.get_product(code)

    def test_write_after_concurrent_delete_is_refused(self, catalog, db_session):
        # A writer that read the row before the delete committed must not
        # resurrect or modify it.
        code = catalog.create_product(make_product()).product_code
        store = CatalogStore(db_session)
        assert store.soft_delete(code) is True
        db_session.commit()

        assert store.update_fields(code, {"name": "Stale"}) is False
        db_session.commit()
        row = db_session.scalar(select(Product).where(Product.product_code == code))
        db_session.refresh(row)
        assert row.name == "Widget"
        assert row.is_deleted is True

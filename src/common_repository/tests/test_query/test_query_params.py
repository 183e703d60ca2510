import pytest
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.dialects import sqlite

from common_repository.query import (
    FilterAction,
    FilterParam,
    Page,
    QueryParams,
    Sort,
    SortDirection,
    parse_query_params,
)
from common_repository.tests.test_fixtures.models import User


def compile_sql(statement) -> str:
    return str(statement.compile(dialect=sqlite.dialect(), compile_kwargs={"literal_binds": True}))


class TestParseQueryParams:

    def test_defaults_when_empty(self):
        params = parse_query_params({})
        assert params.page == Page(number=1, limit=10)
        assert params.sort == Sort(by="created_at", direction=SortDirection.DESCENDING)
        assert params.filter_params == ()

    def test_recognized_keys_and_filters(self):
        params = parse_query_params(
            {"limit": ["20"], "page": ["2"], "sort_by": ["name"], "name.like": ["bon"]}
        )
        assert params.page == Page(number=2, limit=20)
        assert params.sort == Sort(by="name", direction=SortDirection.DESCENDING)
        assert params.filter_params == (FilterParam(attribute="name", action=FilterAction.LIKE, value="bon"),)

    def test_last_value_wins(self):
        params = parse_query_params({"limit": ["5", "50"], "sort_direction": ["desc", "asc"]})
        assert params.page.limit == 50
        assert params.sort.direction is SortDirection.ASCENDING

    @pytest.mark.parametrize("raw", ["abc", "0", "-3", "1.5", "", "++5", "99999999999999999999", "9223372036854775808"])
    def test_invalid_page_values_keep_defaults(self, raw):
        params = parse_query_params({"limit": [raw], "page": [raw]})
        assert params.page == Page()

    def test_leading_plus_sign_is_accepted(self):
        params = parse_query_params({"limit": ["+5"], "page": [" +2 "]})
        assert params.page == Page(number=2, limit=5)

    def test_largest_64_bit_value_is_accepted(self):
        assert parse_query_params({"page": ["9223372036854775807"]}).page.number == 2**63 - 1

    def test_invalid_last_value_falls_back_to_default(self):
        # only the last value is considered; an invalid one keeps the default
        params = parse_query_params({"page": ["3", "x"]})
        assert params.page.number == 1

    def test_sort_direction_is_case_insensitive(self):
        assert parse_query_params({"sort_direction": ["aSc"]}).sort.direction is SortDirection.ASCENDING
        assert parse_query_params({"sort_direction": ["sideways"]}).sort.direction is SortDirection.DESCENDING

    def test_non_identifier_sort_by_is_ignored(self):
        assert parse_query_params({"sort_by": ["name; DROP TABLE users"]}).sort.by == "created_at"

    def test_unknown_actions_and_bad_attributes_are_dropped(self):
        params = parse_query_params(
            {
                "name.contains": ["x"],
                "na me.equals": ["x"],
                ".equals": ["x"],
                "age.greater-than": ["18"],
                "unrelated": ["x"],
            }
        )
        assert params.filter_params == (
            FilterParam(attribute="age", action=FilterAction.GREATER_THAN, value="18"),
        )

    def test_extra_key_segments_are_ignored(self):
        params = parse_query_params({"age.less-than.extra": ["9"]})
        assert params.filter_params == (FilterParam(attribute="age", action=FilterAction.LESS_THAN, value="9"),)

    def test_empty_value_lists_are_ignored(self):
        params = parse_query_params({"limit": [], "name.equals": []})
        assert params.page == Page()
        assert params.filter_params == ()

    def test_filter_order_is_preserved(self):
        params = parse_query_params({"city.equals": ["dhaka"], "age.greater-than-equal": ["20"], "name.in": ["a,b"]})
        assert [f.attribute for f in params.filter_params] == ["city", "age", "name"]

    def test_idempotent(self):
        raw = {"limit": ["20"], "page": ["2"], "sort_by": ["name"], "name.like": ["bon"], "age.in": ["1,2"]}
        assert parse_query_params(raw) == parse_query_params(raw)

    def test_plain_string_values_are_accepted(self):
        assert parse_query_params({"limit": "15"}).page.limit == 15


class TestQueryModels:

    def test_page_offset(self):
        assert Page(number=3, limit=10).offset == 20

    def test_offset_is_capped_at_64_bits(self):
        assert Page(number=2**62, limit=10).offset == 2**63 - 1

    @pytest.mark.parametrize("fields", [{"number": 0}, {"limit": 0}, {"number": -1}, {"limit": 2**63}])
    def test_page_rejects_out_of_range_values(self, fields):
        with pytest.raises(ValidationError):
            Page(**fields)

    def test_sort_rejects_non_identifiers(self):
        with pytest.raises(ValidationError):
            Sort(by="name desc")

    def test_filter_param_rejects_unknown_action(self):
        with pytest.raises(ValidationError):
            FilterParam(attribute="name", action="contains", value="x")

    def test_models_are_immutable(self):
        page = Page()
        with pytest.raises(ValidationError):
            page.number = 5


class TestModifiers:

    def test_pagination_offset_and_limit(self):
        params = QueryParams(page=Page(number=3, limit=10))
        sql = compile_sql(params.pagination_modifier()(select(User)))
        assert "LIMIT 10 OFFSET 20" in sql

    def test_sort_ascending_and_descending(self):
        asc_sql = compile_sql(QueryParams(sort=Sort(by="name", direction=SortDirection.ASCENDING)).sort_modifier()(select(User)))
        desc_sql = compile_sql(QueryParams(sort=Sort(by="age")).sort_modifier()(select(User)))
        assert "ORDER BY users.name ASC" in asc_sql
        assert "ORDER BY users.age DESC" in desc_sql

    def test_unknown_sort_field_is_ignored(self, caplog):
        sql = compile_sql(QueryParams(sort=Sort(by="nickname")).sort_modifier()(select(User)))
        assert "ORDER BY" not in sql
        assert any("Ignored invalid sort field" in r.getMessage() for r in caplog.records)

    @pytest.mark.parametrize(
        "action, value, expected",
        [
            (FilterAction.EQUALS, "dhaka", "users.city = 'dhaka'"),
            (FilterAction.LIKE, "dha", "users.city LIKE '%dha%'"),
            (FilterAction.IN, "dhaka,khulna", "users.city IN ('dhaka', 'khulna')"),
            (FilterAction.GREATER_THAN, "m", "users.city > 'm'"),
            (FilterAction.GREATER_THAN_EQUAL, "m", "users.city >= 'm'"),
            (FilterAction.LESS_THAN, "m", "users.city < 'm'"),
            (FilterAction.LESS_THAN_EQUAL, "m", "users.city <= 'm'"),
        ],
    )
    def test_filter_predicates(self, action, value, expected):
        params = QueryParams(filter_params=(FilterParam(attribute="city", action=action, value=value),))
        assert expected in compile_sql(params.filter_modifier()(select(User)))

    def test_filter_values_are_coerced_to_column_type(self):
        params = QueryParams(
            filter_params=(
                FilterParam(attribute="age", action=FilterAction.GREATER_THAN, value="18"),
                FilterParam(attribute="is_active", action=FilterAction.EQUALS, value="true"),
            )
        )
        sql = compile_sql(params.filter_modifier("users")(select(User)))
        assert "users.age > 18" in sql
        assert "users.is_active = 1" in sql

    def test_filters_are_and_combined_in_order(self):
        params = parse_query_params({"city.equals": ["dhaka"], "age.less-than": ["40"]})
        sql = compile_sql(params.filter_modifier("users")(select(User)))
        assert "WHERE users.city = 'dhaka' AND users.age < 40" in sql

    def test_unknown_filter_attribute_raises(self):
        from common_repository.exceptions import InvalidFieldError

        params = parse_query_params({"nickname.equals": ["x"]})
        with pytest.raises(InvalidFieldError) as exc_info:
            params.filter_modifier("users")(select(User))
        assert exc_info.value.fields == ["nickname"]
        assert "users.nickname" in exc_info.value.message

    def test_prefix_must_name_a_from_table(self):
        from common_repository.exceptions import InvalidFieldError

        params = parse_query_params({"name.equals": ["x"]})
        with pytest.raises(InvalidFieldError):
            params.filter_modifier("cities")(select(User))

    def test_uncoercible_value_raises(self):
        from common_repository.exceptions import InvalidFieldError

        params = parse_query_params({"age.greater-than": ["old"]})
        with pytest.raises(InvalidFieldError):
            params.filter_modifier()(select(User))

    def test_apply_combines_all_modifiers(self):
        params = parse_query_params(
            {"limit": ["5"], "page": ["2"], "sort_by": ["age"], "sort_direction": ["asc"], "city.equals": ["dhaka"]}
        )
        sql = compile_sql(params.apply(select(User), "users"))
        assert "WHERE users.city = 'dhaka'" in sql
        assert "ORDER BY users.age ASC" in sql
        assert "LIMIT 5 OFFSET 5" in sql

    def test_modifiers_do_not_mutate_the_input_statement(self):
        statement = select(User)
        parse_query_params({"city.equals": ["dhaka"]}).apply(statement, "users")
        assert "WHERE" not in compile_sql(statement)

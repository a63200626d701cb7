"""Tests for splicing data scopes into parameterized queries."""

import pytest

from neo_authz.application.services import apply_scope, renumber_placeholders
from neo_authz.domain.value_objects import DataScope, FilterConfig, ScopeType


class TestRenumberPlaceholders:

    def test_shifts_every_index_once(self):
        assert renumber_placeholders("a = $1 OR b = $2", 1) == "a = $2 OR b = $3"

    def test_multi_digit_placeholders_are_not_split(self):
        condition = "x IN ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12)"
        shifted = renumber_placeholders(condition, 2)
        assert shifted == "x IN ($3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13, $14)"

    def test_zero_offset_is_identity(self):
        assert renumber_placeholders("a = $1", 0) == "a = $1"


class TestApplyScope:

    def test_unrestricted_scope_leaves_query_untouched(self):
        result = apply_scope("SELECT * FROM tasks WHERE status = $1", ["open"], DataScope.unrestricted())
        assert result.query == "SELECT * FROM tasks WHERE status = $1"
        assert result.parameters == ["open"]

    def test_appends_where_when_missing(self):
        scope = DataScope(condition="user_id = $1", parameters=[3], scope_type=ScopeType.OWN)
        result = apply_scope("SELECT * FROM tasks", [], scope)
        assert result.query == "SELECT * FROM tasks WHERE (user_id = $1)"
        assert result.parameters == [3]

    def test_renumbers_after_base_parameters(self):
        scope = DataScope(
            condition="(user_id IN (SELECT user_id FROM team_members WHERE team_id IN ($1)) OR user_id = $2)",
            parameters=[10, 2],
            scope_type=ScopeType.TEAM,
        )
        result = apply_scope("SELECT * FROM tasks WHERE status = $1", ["open"], scope)

        clause = result.query.split(" AND ", 1)[1]
        assert "$2" in clause and "$3" in clause
        assert "$1" not in clause
        assert result.parameters == ["open", 10, 2]

    def test_where_detection_is_case_insensitive(self):
        scope = DataScope(condition="user_id = $1", parameters=[3])
        result = apply_scope("select * from tasks where done = false", [], scope)
        assert result.query == "select * from tasks where done = false AND (user_id = $1)"

    def test_does_not_mutate_inputs(self):
        base = ["open"]
        scope = DataScope(condition="user_id = $1", parameters=[3])
        apply_scope("SELECT * FROM tasks WHERE s = $1", base, scope)
        assert base == ["open"]
        assert scope.parameters == [3]


class TestBuildFilteredQuery:

    @pytest.mark.asyncio
    async def test_admin_query_unchanged(self, query_filter_service):
        result = await query_filter_service.build_filtered_query("SELECT * FROM tasks WHERE a = $1", [5], 1)
        assert result.query == "SELECT * FROM tasks WHERE a = $1"
        assert result.parameters == [5]

    @pytest.mark.asyncio
    async def test_user_query_restricted_to_own_rows(self, query_filter_service):
        result = await query_filter_service.build_filtered_query(
            "SELECT * FROM tasks t WHERE t.status = $1", ["open"], 3, FilterConfig(table_alias="t")
        )
        assert result.query == "SELECT * FROM tasks t WHERE t.status = $1 AND (t.user_id = $2)"
        assert result.parameters == ["open", 3]

    @pytest.mark.asyncio
    async def test_manager_team_query(self, query_filter_service):
        result = await query_filter_service.build_filtered_query("SELECT * FROM tasks", [], 2)

        assert " WHERE " in result.query
        assert result.parameters == [10, 20, 2]
        assert "$1" in result.query and "$2" in result.query and "$3" in result.query

    @pytest.mark.asyncio
    async def test_manager_without_own_rows(self, query_filter_service):
        result = await query_filter_service.build_filtered_query(
            "SELECT * FROM tasks", [], 2, FilterConfig(include_own=False, owner_column="assignee_id")
        )
        assert result.parameters == [10, 20]
        assert "assignee_id IN" in result.query
        assert " OR " not in result.query

    @pytest.mark.asyncio
    async def test_scope_recorded_on_result(self, query_filter_service):
        result = await query_filter_service.build_filtered_query("SELECT 1", [], 3)
        assert result.scope.scope_type == ScopeType.OWN

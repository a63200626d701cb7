"""
Query filter service.

Splices a data scope into an existing parameterized query. Only placeholder
indices computed here are written into the SQL text; every value travels in
the parameter list.
"""
import re
from typing import Any, Optional, Sequence

from ...domain.value_objects import DataScope, FilterConfig, FilteredQuery, UserId
from .data_scope_service import DataScopeService

_PLACEHOLDER = re.compile(r"\$(\d+)(?!\d)")


def renumber_placeholders(condition: str, offset: int) -> str:
    """Shift every ``$n`` in ``condition`` by ``offset`` in a single pass."""
    if offset == 0:
        return condition
    return _PLACEHOLDER.sub(lambda m: f"${int(m.group(1)) + offset}", condition)


def apply_scope(base_query: str, base_parameters: Sequence[Any], scope: DataScope) -> FilteredQuery:
    """
    Append ``scope`` to ``base_query``.

    Unrestricted scopes return the query and parameters unchanged. Otherwise
    the scope condition is renumbered past the base parameters, parenthesized
    and joined with AND when the query already mentions WHERE (case-insensitive
    substring), else with WHERE.
    """
    base_parameters = list(base_parameters)
    if scope.is_unrestricted:
        return FilteredQuery(query=base_query, parameters=base_parameters, scope=scope)

    condition = renumber_placeholders(scope.condition, len(base_parameters))
    connector = " AND " if "where" in base_query.lower() else " WHERE "

    return FilteredQuery(
        query=f"{base_query}{connector}({condition})",
        parameters=base_parameters + list(scope.parameters),
        scope=scope,
    )


class QueryFilterService:
    """Resolves the caller's scope and renders it into their query."""

    def __init__(self, data_scope_service: DataScopeService):
        self.data_scope_service = data_scope_service

    async def build_filtered_query(
        self,
        base_query: str,
        base_parameters: Sequence[Any],
        user_id: UserId,
        config: Optional[FilterConfig] = None,
    ) -> FilteredQuery:
        """
        Build a query restricted to the rows ``user_id`` may see.

        Args:
            base_query: Query using ``$1..$n`` for ``base_parameters``
            base_parameters: Values for the base query's placeholders
            user_id: Acting user
            config: Table alias, owner column and own-data inclusion

        Returns:
            FilteredQuery with the combined query and parameter list
        """
        config = config or FilterConfig()
        context = await self.data_scope_service.build_context(user_id)
        scope = self.data_scope_service.get_scope(
            context,
            table_alias=config.table_alias,
            owner_column=config.owner_column,
            include_own=config.include_own,
        )
        return apply_scope(base_query, base_parameters, scope)

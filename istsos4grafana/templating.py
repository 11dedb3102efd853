# Copyright 2025 SUPSI
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     https://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Template variable substitution.

Dashboard variables are referenced as `$name`, `${name}`, `${name:format}`
or `[[name]]`. References to unknown variables are left untouched.
"""

import logging
import re

from istsos4grafana.models import Query
from istsos4grafana.utils.utils import compare_entity_names

logger = logging.getLogger(__name__)

VARIABLE_PATTERN = re.compile(
    r"\$(\w+)|\$\{(\w+)(?::[^}]*)?\}|\[\[(\w+)(?::[^\]]*)?\]\]"
)


class TemplateSrv:
    """
    Resolves variable references against dashboard variables.

    Args:
        variables (dict): Variable values by name, used when a name is
            missing from the scoped variables of a request.
    """

    def __init__(self, variables=None):
        self.variables = dict(variables or {})

    def get_value(self, name, scoped_vars=None):
        if scoped_vars and name in scoped_vars:
            value = scoped_vars[name]
        elif name in self.variables:
            value = self.variables[name]
        else:
            return None
        # Scoped variables carry {"text", "value"}
        if isinstance(value, dict):
            value = value.get("value")
        if isinstance(value, (list, tuple)):
            return ",".join(str(v) for v in value)
        if value is None:
            return None
        return str(value)

    def replace(self, text, scoped_vars=None):
        if not text or not isinstance(text, str):
            return text

        def substitute(match):
            name = match.group(1) or match.group(2) or match.group(3)
            value = self.get_value(name, scoped_vars)
            return match.group(0) if value is None else value

        return VARIABLE_PATTERN.sub(substitute, text)


def _replace_filter(condition, scoped_vars, template_srv):
    if condition.type == "complex":
        return condition.model_copy(
            update={
                "expression": template_srv.replace(
                    condition.expression, scoped_vars
                )
            }
        )
    update = {}
    if isinstance(condition.value, str):
        update["value"] = template_srv.replace(condition.value, scoped_vars)
    if condition.type == "temporal":
        update["start_date"] = template_srv.replace(
            condition.start_date, scoped_vars
        )
        update["end_date"] = template_srv.replace(
            condition.end_date, scoped_vars
        )
    return condition.model_copy(update=update) if update else condition


def _as_entity_id(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def apply_template_variables(
    query: Query, scoped_vars=None, template_srv=None
) -> Query:
    """
    Substitutes template variables into a query.

    Variables are replaced in the alias, the free-form expression and the
    filter values. A variable filter on the queried entity kind whose
    variable resolves to an integer becomes the entity id of the query and
    is removed. Other variable filters receive the resolved value, or no
    value when the variable cannot be resolved.

    Args:
        query (Query): The query, left untouched.
        scoped_vars (dict): The request scoped variables.
        template_srv (TemplateSrv): The variable resolver.

    Returns:
        Query: The query with variables applied.
    """
    template_srv = template_srv or TemplateSrv()
    update = {
        "alias": template_srv.replace(query.alias, scoped_vars),
        "expression": template_srv.replace(query.expression, scoped_vars),
    }

    filters = []
    for condition in query.filters:
        if condition.type != "variable":
            filters.append(
                _replace_filter(condition, scoped_vars, template_srv)
            )
            continue

        reference = f"${condition.variable_name}"
        value = template_srv.replace(reference, scoped_vars)
        if not value or value == reference:
            logger.debug(f"Variable {condition.variable_name} is unresolved")
            filters.append(condition.model_copy(update={"value": None}))
            continue

        if compare_entity_names(condition.entity, query.entity):
            entity_id = _as_entity_id(value)
            if entity_id is not None:
                logger.debug(
                    f"Applied variable {condition.variable_name} "
                    f"as entity id {entity_id}"
                )
                update["entity_id"] = entity_id
                continue
        filters.append(condition.model_copy(update={"value": value}))

    update["filters"] = filters
    return query.model_copy(update=update)

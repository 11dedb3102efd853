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
Scanner for free-form query expressions.

Custom expressions bypass the structured query model, so the relations
they expand are recovered by scanning their `$expand=` options. The scan
splits on commas and drops parenthesised sub-options, which means
directives nested inside those parentheses are not detected reliably.
"""

import re
import urllib.parse

from istsos4grafana.utils.utils import compare_entity_names

EXPAND_PATTERN = re.compile(r"\$expand=([^&]*)")
GROUP_PATTERN = re.compile(r"\([^()]*\)")


def _decode(expression: str) -> str:
    return urllib.parse.unquote(expression)


def strip_groups(expression: str) -> str:
    """Removes parenthesised sub-options, innermost first."""
    stripped = GROUP_PATTERN.sub("", expression)
    while stripped != expression:
        expression = stripped
        stripped = GROUP_PATTERN.sub("", expression)
    return stripped


def get_query_options(expression: str) -> list:
    """
    Lists the top level query option names of a free-form expression.

    Options nested in an expanded relation, such as the `$top` of
    `Observations($top=5)`, are not top level and are left out.

    Args:
        expression (str): The raw query expression, optionally a full
            resource path.

    Returns:
        list: The option names, in order of appearance.
    """
    if not expression:
        return []
    expression = strip_groups(_decode(expression))
    if expression.startswith("/"):
        _, _, expression = expression.partition("?")
    options = []
    for param in expression.lstrip("?").split("&"):
        name = param.split("=")[0].strip()
        if name:
            options.append(name)
    return options


def get_expanded_entities(expression: str) -> list:
    """
    Lists the top level relations expanded by a free-form expression.

    Args:
        expression (str): The raw query expression.

    Returns:
        list: The expanded relation names, in order of appearance.
    """
    if not expression:
        return []
    entities = []
    for match in EXPAND_PATTERN.finditer(_decode(expression)):
        for part in match.group(1).split(","):
            name = part.split("(")[0].strip()
            if name and name not in entities:
                entities.append(name)
    return entities


def search_expand_entity(expression: str, entity: str) -> bool:
    return any(
        compare_entity_names(expanded, entity)
        for expanded in get_expanded_entities(expression)
    )

"""
Attribute filter builder for Price List product queries.
"""
from typing import List

from cost_engine.domain.cost_models import AttributeMap, FilterPredicate


def build_filters(attrs: AttributeMap) -> List[FilterPredicate]:
    """
    Build one exact-match predicate per requested attribute.

    Keys are passed through unchanged, region included; unknown attribute
    names are left for the catalog to reject or ignore.
    """
    return [FilterPredicate(field=key, value=str(value)) for key, value in attrs.items()]

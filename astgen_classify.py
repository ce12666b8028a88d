#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

"""
Field-type classification.

Decides, per node kind, whether the generated record carries the arena
lifetime. The decision is local to the kind's own fields: every field type
declares whether it is ownership-carrying, and a record needs the lifetime iff
at least one of its fields does.
"""

from dataclasses import dataclass
from typing import Dict

from astgen_schema import Category, NodeKindSpec


def record_needs_ownership(kind: NodeKindSpec) -> bool:
    return any(ftype.ownership_carrying for _, ftype in kind.fields)


def constructor_needs_own_generic(kind: NodeKindSpec) -> bool:
    """
    The constructor returns the (always lifetime-generic) union. When the
    record itself has no lifetime, the constructor must declare it.
    """
    return not record_needs_ownership(kind)


@dataclass(frozen=True)
class OwnershipPlan:
    """Where the lifetime parameter goes for one kind."""
    record: bool        # `struct Foo<'a>` / `impl<'a> Foo<'a>`
    constructor: bool   # `fn new<'a>(...)`
    variant: bool       # `Variant(&'a Foo<'a>)`


def plan_for(kind: NodeKindSpec) -> OwnershipPlan:
    needs = record_needs_ownership(kind)
    return OwnershipPlan(record=needs, constructor=constructor_needs_own_generic(kind), variant=needs)


def classify_category(category: Category) -> Dict[str, OwnershipPlan]:
    """Map record name -> OwnershipPlan, in declaration order."""
    return {kind.name: plan_for(kind) for kind in category.kinds}

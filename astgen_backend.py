"""
AST Source Generation Backend

Orchestrates generation of one Rust source unit per schema category.

The backend decides WHAT to emit and in which ORDER (banner, imports, union,
dispatcher, then record/constructor/renderer per kind in declaration order),
while delegating the HOW to the RustEmitter.
"""

#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

from dataclasses import dataclass, field
from typing import Dict, List, NoReturn, Optional, Tuple

from astgen_context import GenerationContext, TargetPaths
from astgen_errors import EmissionError, SchemaLocation
from astgen_logger import log_debug, log_stage
from astgen_rust_emitter import RustEmitter
from astgen_schema import Category, Schema
from astgen_types import PrimitiveRef, is_sequence, is_token, node_target


@dataclass
class Backend:
    """
    Target-independent orchestration of one generation pass.

    Output per category is a pure function of the (validated) schema and the
    target paths: emitting twice yields byte-identical text.
    """

    schema: Schema
    paths: TargetPaths = field(default_factory=TargetPaths)
    context: Optional[GenerationContext] = None

    emitter: RustEmitter = field(init=False)

    def __post_init__(self):
        self.emitter = RustEmitter(paths=self.paths)
        self.emitter.set_schema(self.schema)

    def ice(self, message: str, category: Optional[str] = None) -> NoReturn:
        raise EmissionError(message, SchemaLocation(category=category))

    # --- Public API ---

    def generate_all(self) -> Dict[str, str]:
        """Return {module name: source} for every category, in declaration order."""
        return {cat.module: self.generate_category(cat.name) for cat in self.schema.categories}

    def generate_category(self, name: str) -> str:
        category = self.schema.category(name)
        if category is None:
            self.ice(f"[ICE-2010] no category named '{name}'")
        log_stage(self.context, "Emitting category", category.name)

        em = self.emitter
        em.reset()
        em.current_category = category.name
        em.current_kind = None

        em.emit_banner(category)
        self._emit_imports(category)

        em.emit_union(category)
        em.out.emit()
        em.emit_dispatcher(category)

        for kind in category.kinds:
            em.current_kind = kind.name
            log_debug(self.context, f"  {category.union}::{kind.variant} -> {kind.name}")
            em.out.emit()
            em.emit_record(kind)
            em.out.emit()
            em.emit_constructor(category, kind)
            em.out.emit()
            em.emit_renderer(kind)
        em.current_kind = None

        return em.get_output()

    # --- Imports ---

    def collect_imports(self, category: Category) -> List[str]:
        """
        Rust `use` paths required by this category, derived from the field types
        actually declared: std first, then external crates, then crate-local
        collaborators, then sibling categories.
        """
        uses_token = False
        uses_atom = False
        uses_sequence = False
        siblings: List[Tuple[str, str]] = []

        for kind in category.kinds:
            for _, ftype in kind.fields:
                if is_token(ftype):
                    uses_token = True
                if is_sequence(ftype):
                    uses_sequence = True
                if isinstance(ftype, PrimitiveRef) and ftype.name == "StringAtom":
                    uses_atom = True
                target = node_target(ftype)
                if target is None:
                    continue
                owner = self.schema.category_of_target(target)
                if owner is None:
                    self.ice(f"[ICE-2020] unknown node type '{target}'", category.name)
                if owner.module != category.module and (owner.module, target) not in siblings:
                    siblings.append((owner.module, target))

        imports = ["std::fmt"]
        if uses_sequence:
            imports.append(self.paths.sequence)
        if uses_token:
            imports.append(self.paths.token)
        if uses_atom:
            imports.append(self.paths.atom)
        imports.extend(f"super::{module}::{target}" for module, target in siblings)
        return imports

    def _emit_imports(self, category: Category) -> None:
        em = self.emitter
        for path in self.collect_imports(category):
            em.emit_use(path)
        em.out.emit()

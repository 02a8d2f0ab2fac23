# Copyright 2026 NNCircuit Contributors
# SPDX-License-Identifier: Apache-2.0

"""Clock-cycle and latency analysis of elaborated instance trees.

The cycle of a component is the clock cycle at which its output becomes
valid::

    cycle(c) = max(cycle(s) for s in sources(c)) + latency(c)

where the max over no sources is ``-1``, so an unconnected component of
latency 1 lands in cycle 0. Inputs of the enclosing module arrive at cycle 0,
``input`` primitives are pinned to cycle 0, and no component is placed before
cycle 0. A module's latency is the latest cycle among the sources of its
output mappings, or 1 for a module without components or mappings.

Results are memoized on each :class:`ModuleInstance`; a structural edit on a
module clears them (see :meth:`ModuleInstance.invalidate_latency`).
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

from nncircuit.errors import CycleDetectedError, InvalidReferenceError
from nncircuit.model.instances import ComponentInstance, ModuleInstance
from nncircuit.model.references import ModuleInputRef

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############


ZERO_LATENCY_TYPES = frozenset({"input", "output"})
UNIT_LATENCY_TYPES = frozenset({"reg"})
DEFAULT_LATENCY = 1


def primitive_latency(instance: ComponentInstance) -> int:
    """Return the latency of a primitive instance.

    ``input`` and ``output`` take no time, ``reg`` always takes exactly one
    cycle, and every other primitive uses its declared latency or 1.
    """
    if instance.type_name in ZERO_LATENCY_TYPES:
        return 0
    if instance.type_name in UNIT_LATENCY_TYPES:
        return 1
    if instance.declared_latency is None:
        return DEFAULT_LATENCY
    return instance.declared_latency


class LatencyAnalyzer:
    """Computes component cycles and module latencies over an instance tree."""

    def latency(self, instance: ComponentInstance) -> int:
        """Return the latency of *instance*, memoized for modules.

        Raises:
            CycleDetectedError: If the module contains a dependency cycle on
                the path to one of its outputs.
        """
        if not isinstance(instance, ModuleInstance):
            return primitive_latency(instance)
        if instance.latency_cache is not None:
            return instance.latency_cache
        if not instance.children or not instance.output_mappings:
            value = DEFAULT_LATENCY
        else:
            value = max(self.cycle(instance, ref.component_id) for ref in instance.output_mappings.values())
        instance.latency_cache = value
        logger.debug("Latency of '%s' (%s) is %d", instance.id, instance.type_name, value)
        return value

    def cycle(self, module: ModuleInstance, component_id: str) -> int:
        """Return the cycle of the child *component_id* of *module*, memoized per module.

        Raises:
            CycleDetectedError: If the child depends on itself, directly or
                transitively. ``path`` lists the ids along the cycle.
            InvalidReferenceError: If a source id is not a child of *module*.
        """
        cache = module.cycle_cache
        if component_id in cache:
            return cache[component_id]

        path: list[str] = []
        frames: list[tuple[ComponentInstance, Iterator[str]]] = []

        def push(child_id: str) -> None:
            if child_id in path:
                raise CycleDetectedError([*path[path.index(child_id) :], child_id])
            child = _child(module, child_id)
            path.append(child_id)
            frames.append((child, iter(child.source_ids())))

        push(component_id)
        while frames:
            instance, sources = frames[-1]
            for source_id in sources:
                if source_id not in cache:
                    push(source_id)
                    break
            else:
                frames.pop()
                path.pop()
                cache[instance.id] = self._settle(instance, cache)
        return cache[component_id]

    def _settle(self, instance: ComponentInstance, cache: dict[str, int]) -> int:
        """Return the cycle of *instance* once all of its sources are cached."""
        if _is_pinned_input(instance):
            return 0
        return max(max(_arrivals(instance, cache), default=-1) + self.latency(instance), 0)

    def annotate(self, module: ModuleInstance) -> None:
        """Write ``latency`` and ``cycle`` onto *module* and every instance below it."""
        module.latency = self.latency(module)
        for child in module.children.values():
            child.cycle = self.cycle(module, child.id)
            if isinstance(child, ModuleInstance):
                self.annotate(child)
            else:
                child.latency = primitive_latency(child)


# ################
# Implementation
# ################


def _child(module: ModuleInstance, component_id: str) -> ComponentInstance:
    child = module.child(component_id)
    if child is None:
        raise InvalidReferenceError(component_id, f"no component '{component_id}' in '{module.id}'")
    return child


def _is_pinned_input(instance: ComponentInstance) -> bool:
    return instance.is_primitive and instance.type_name == "input"


def _arrivals(instance: ComponentInstance, cache: dict[str, int]) -> list[int]:
    """Return the cycles at which the sources of *instance* become valid."""
    arrivals = [cache[source_id] for source_id in instance.source_ids()]
    if any(isinstance(ref, ModuleInputRef) for ref in instance.sources()):
        arrivals.append(0)
    return arrivals

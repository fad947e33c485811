"""Critical Path Method over single-predecessor phase forests.

Cycle detection runs first and yields the topological order both passes
walk, so neither pass needs recursion or a visited set.
"""

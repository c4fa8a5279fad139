"""Background check case workflow, its activities and the worker that hosts them.

Submodules are imported directly; the workflow sandbox re-imports this
package, so it stays free of side effects.
"""

"""Tests for graph module."""

import unittest

from m2m.graph import (
    CycleError,
    TaskNotFoundError,
    build_dependency_tree,
    resolve_execution_order,
)
from m2m.parser import TaskDefinition, TaskTable


def make_tasks(**deps: list[str]) -> TaskTable:
    tasks = TaskTable()
    for name, depends_on in deps.items():
        tasks.add(TaskDefinition(name=name, commands=[f"echo {name}"], depends_on=depends_on))
    return tasks


class TestResolveExecutionOrder(unittest.TestCase):
    def assertOrder(self, tasks: TaskTable, target: str, expected: list[str]):
        resolution = resolve_execution_order(tasks, target)
        self.assertTrue(resolution.ok, resolution.error)
        self.assertEqual(resolution.order, expected)

    def test_single_task(self):
        """Test execution order for single task with no dependencies."""
        self.assertOrder(make_tasks(build=[]), "build", ["build"])

    def test_linear_dependencies(self):
        """Test execution order for linear dependency chain."""
        tasks = make_tasks(lint=[], build=["lint"], test=["build"])

        self.assertOrder(tasks, "test", ["lint", "build", "test"])

    def test_diamond_dependencies(self):
        """Test that a shared dependency runs once, before both dependents."""
        tasks = make_tasks(a=[], b=["a"], c=["a"], d=["b", "c"])

        self.assertOrder(tasks, "d", ["a", "b", "c", "d"])

    def test_declared_dependency_order_is_followed(self):
        """Test that independent dependencies run in declaration order."""
        tasks = make_tasks(x=[], y=[], z=[], all=["z", "x", "y"])

        self.assertOrder(tasks, "all", ["z", "x", "y", "all"])

    def test_duplicate_dependency_names_are_ignored(self):
        """Test that listing a dependency twice doesn't run it twice."""
        self.assertOrder(make_tasks(a=[], b=["a", "a"]), "b", ["a", "b"])

    def test_unrelated_tasks_are_excluded(self):
        tasks = make_tasks(a=[], b=["a"], other=[])

        self.assertNotIn("other", resolve_execution_order(tasks, "b").order)

    def test_resolution_is_repeatable(self):
        tasks = make_tasks(a=[], b=["a"], c=["b", "a"])

        self.assertEqual(resolve_execution_order(tasks, "c"), resolve_execution_order(tasks, "c"))

    def test_task_not_found(self):
        """Test error when the target task doesn't exist."""
        resolution = resolve_execution_order(make_tasks(build=[]), "deploy")

        self.assertFalse(resolution.ok)
        self.assertIsInstance(resolution.error, TaskNotFoundError)
        self.assertEqual(resolution.error.task_name, "deploy")
        self.assertEqual(resolution.order, [])

    def test_missing_dependency(self):
        """Test error when a dependency doesn't exist."""
        resolution = resolve_execution_order(make_tasks(build=["generate"]), "build")

        self.assertIsInstance(resolution.error, TaskNotFoundError)
        self.assertEqual(resolution.error.task_name, "generate")
        self.assertEqual(resolution.order, [])

    def test_self_dependency_is_a_cycle(self):
        resolution = resolve_execution_order(make_tasks(a=["a"]), "a")

        self.assertIsInstance(resolution.error, CycleError)
        self.assertEqual(resolution.error.task_name, "a")

    def test_cycle_detection(self):
        """Test that a dependency cycle is reported with the offending chain."""
        resolution = resolve_execution_order(make_tasks(a=["b"], b=["c"], c=["a"]), "a")

        self.assertIsInstance(resolution.error, CycleError)
        self.assertEqual(resolution.error.chain, ["a", "b", "c", "a"])
        self.assertEqual(resolution.order, [])

    def test_cycle_below_target(self):
        resolution = resolve_execution_order(make_tasks(top=["a"], a=["b"], b=["a"]), "top")

        self.assertEqual(resolution.error.chain, ["a", "b", "a"])

    def test_deep_chain_does_not_hit_recursion_limit(self):
        """Test a dependency chain far deeper than the interpreter's recursion limit."""
        depth = 5000
        tasks = TaskTable()
        tasks.add(TaskDefinition(name="t0", commands=["true"]))
        for i in range(1, depth):
            tasks.add(TaskDefinition(name=f"t{i}", commands=["true"], depends_on=[f"t{i - 1}"]))

        order = resolve_execution_order(tasks, f"t{depth - 1}").order
        self.assertEqual(len(order), depth)
        self.assertEqual(order[0], "t0")
        self.assertEqual(order[-1], f"t{depth - 1}")

    def test_every_dependency_precedes_its_dependent(self):
        tasks = make_tasks(
            fetch=[],
            configure=["fetch"],
            compile=["configure", "fetch"],
            docs=["configure"],
            package=["compile", "docs"],
        )

        order = resolve_execution_order(tasks, "package").order
        self.assertEqual(len(order), len(set(order)))
        self.assertEqual(order[-1], "package")
        for name in order:
            for dep in tasks.get(name).depends_on:
                self.assertLess(order.index(dep), order.index(name))


class TestBuildDependencyTree(unittest.TestCase):
    def test_nested_tree(self):
        tasks = make_tasks(a=[], b=["a"], c=["b", "a"])

        tree = build_dependency_tree(tasks, "c")
        self.assertEqual(tree["name"], "c")
        self.assertEqual([dep["name"] for dep in tree["deps"]], ["b", "a"])
        self.assertEqual(tree["deps"][0]["deps"][0]["name"], "a")

    def test_cycle_is_marked(self):
        tasks = make_tasks(a=["b"], b=["a"])

        tree = build_dependency_tree(tasks, "a")
        inner = tree["deps"][0]["deps"][0]
        self.assertEqual(inner["name"], "a")
        self.assertTrue(inner["cycle"])

    def test_missing_dependency_is_marked(self):
        tree = build_dependency_tree(make_tasks(a=["ghost"]), "a")
        self.assertTrue(tree["deps"][0]["missing"])

    def test_unknown_target_is_marked(self):
        tree = build_dependency_tree(make_tasks(a=[]), "b")
        self.assertEqual(tree, {"name": "b", "deps": [], "missing": True})


if __name__ == "__main__":
    unittest.main()

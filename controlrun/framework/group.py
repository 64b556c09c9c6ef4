"""
Example Groups and Examples

The executable form of a check. An ExampleGroup is a labelled, nestable
group of assertions about a subject; an Example is one assertion. Both sit
on top of the unittest machinery so any unittest result object can observe
a run:

    ExampleGroup -> unittest.TestSuite
    Example      -> unittest.TestCase

Groups are built by calling a body with the group itself, which declares
assertions (it, its) and nested groups (describe):

    def body(g):
        g.its("version", lambda v: v == "2.0", "should eq '2.0'")

    group = ExampleGroup(gordon_config, body=body)
"""

from __future__ import annotations

import time
import unittest
from typing import Any, Callable, Dict, List, Optional

from controlrun.ir.model import ExampleStatus


def source_info(block: Any) -> Dict[str, Any]:
    """
    Return file path and line number of a callable, or {} if unknown.

    Builtins, partials and callable objects carry no code object and
    yield an empty mapping.
    """
    if block is None:
        return {}
    code = getattr(block, "__code__", None)
    if code is None:
        return {}
    return {"file_path": code.co_filename, "line_number": code.co_firstlineno}


def describe_args(args: tuple) -> str:
    """Human-readable label for a group declared with these arguments."""
    return " ".join(str(arg) for arg in args)


class Example(unittest.TestCase):
    """
    A single assertion inside an example group.

    The body is called with the group's subject. Returning False or
    raising AssertionError fails the example; any other exception is
    recorded as an error. An example without a body is pending and
    carries its description as the pending message.
    """

    # pytest must not collect this class
    __test__ = False

    def __init__(
        self,
        group: "ExampleGroup",
        description: str,
        body: Optional[Callable[[Any], Any]] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        super().__init__("runTest")
        self.group = group
        self.description = description
        self.body = body
        self.metadata: Dict[str, Any] = {
            "description": description,
            "full_description": self.full_description,
        }
        self.metadata.update(metadata or {})

        self.status: Optional[ExampleStatus] = None
        self.exception: Optional[BaseException] = None
        self.run_time: float = 0.0

    # identity, not method name
    __eq__ = object.__eq__
    __hash__ = object.__hash__

    @property
    def full_description(self) -> str:
        parent = self.group.full_description
        if parent and self.description:
            return f"{parent} {self.description}"
        return parent or self.description

    @property
    def pending_message(self) -> Optional[str]:
        if self.body is None:
            return self.description
        return None

    def id(self) -> str:
        return self.full_description

    def shortDescription(self) -> str:
        return self.full_description

    def __str__(self) -> str:
        return self.full_description

    def __repr__(self) -> str:
        return f"<Example {self.full_description!r} status={self.status}>"

    def run(self, result=None):
        self.status = None
        self.exception = None
        start = time.perf_counter()
        try:
            return super().run(result)
        finally:
            self.run_time = time.perf_counter() - start

    def runTest(self) -> None:
        if self.body is None:
            self.status = ExampleStatus.PENDING
            self.skipTest(self.description)

        try:
            outcome = self.body(self.group.subject)
        except unittest.SkipTest:
            self.status = ExampleStatus.PENDING
            raise
        except Exception as exc:
            self.status = ExampleStatus.FAILED
            self.exception = exc
            raise

        if outcome is False:
            self.status = ExampleStatus.FAILED
            self.exception = self.failureException(
                f"expected {self.full_description}"
            )
            raise self.exception

        self.status = ExampleStatus.PASSED


class ExampleGroup(unittest.TestSuite):
    """
    A named, nestable group of examples.

    - filtered_examples: the examples declared directly in this group
    - children:          nested groups, in declaration order
    - metadata:          mutable record; identifying keys are stamped later

    The group keeps its examples after a run so the same group can be
    executed more than once.
    """

    _cleanup = False

    def __init__(
        self,
        *args: Any,
        metadata: Optional[Dict[str, Any]] = None,
        body: Optional[Callable[["ExampleGroup"], Any]] = None,
        parent: Optional["ExampleGroup"] = None,
    ):
        super().__init__()
        self.args = args
        self.subject = args[0] if args else None
        self.description = describe_args(args)
        self.parent = parent
        self.filtered_examples: List[Example] = []
        self.children: List[ExampleGroup] = []

        self.metadata: Dict[str, Any] = {
            "description": self.description,
            "full_description": self.full_description,
        }
        self.metadata.update(metadata or {})

        if body is not None:
            body(self)

    __eq__ = object.__eq__
    __hash__ = object.__hash__

    @property
    def full_description(self) -> str:
        if self.parent is None:
            return self.description
        return f"{self.parent.full_description} {self.description}".strip()

    def __repr__(self) -> str:
        return (
            f"<ExampleGroup {self.description!r} "
            f"examples={len(self.filtered_examples)} children={len(self.children)}>"
        )

    # ---- declaration API ----

    def it(
        self,
        description: str,
        body: Optional[Callable[[Any], Any]] = None,
    ) -> Example:
        """Declare an assertion about the subject; no body means pending."""
        return self._add_example(description, body, source_info(body))

    def _add_example(
        self,
        description: str,
        body: Optional[Callable[[Any], Any]],
        location: Dict[str, Any],
    ) -> Example:
        if not location:
            location = {
                k: self.metadata[k]
                for k in ("file_path", "line_number")
                if k in self.metadata
            }
        example = Example(self, description, body, metadata=location)
        self.filtered_examples.append(example)
        self.addTest(example)
        return example

    def its(
        self,
        attribute: str,
        predicate: Callable[[Any], Any],
        description: Optional[str] = None,
    ) -> Example:
        """Declare an assertion about one attribute of the subject."""
        label = f"{attribute} {description}" if description else attribute

        def check(subject: Any) -> Any:
            return predicate(getattr(subject, attribute))

        return self._add_example(label, check, source_info(predicate))

    def describe(
        self,
        *args: Any,
        body: Optional[Callable[["ExampleGroup"], Any]] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> "ExampleGroup":
        """Declare a nested group."""
        child_metadata = dict(source_info(body))
        child_metadata.update(metadata or {})
        child = ExampleGroup(*args, metadata=child_metadata, body=body, parent=self)
        self.children.append(child)
        self.addTest(child)
        return child

    # ---- traversal & execution ----

    def descendant_examples(self) -> List[Example]:
        """All examples in this group and its children, in declaration order."""
        examples: List[Example] = []
        for test in self:
            if isinstance(test, ExampleGroup):
                examples.extend(test.descendant_examples())
            else:
                examples.append(test)
        return examples

    def succeeds(self) -> bool:
        """
        Run the group on its own and report whether nothing failed.

        Pending examples do not count as failures.
        """
        result = unittest.TestResult()
        self.run(result)
        return result.wasSuccessful()

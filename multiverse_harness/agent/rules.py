# (c) Copyright IBM Corp. 2021
# (c) Copyright Instana Inc. 2016

"""
Naming rules rewrite transaction and metric names before they are recorded.

Rules are handed to the agent by the collector on every connect and are only
ever appended to; nothing but an explicit clear() removes them.
"""

import re
import threading
from typing import Any, Dict, Iterable, Iterator, List, Optional


class NamingRule(object):
    def __init__(
        self,
        match: str,
        replacement: str = "",
        ignore: bool = False,
        eval_order: int = 0,
        terminate_chain: bool = True,
        replace_all: bool = False,
    ) -> None:
        self.match = match
        self.pattern = re.compile(match, re.IGNORECASE)
        self.replacement = replacement
        self.ignore = ignore
        self.eval_order = eval_order
        self.terminate_chain = terminate_chain
        self.replace_all = replace_all

    @classmethod
    def from_collector(cls, data: Dict[str, Any]) -> "NamingRule":
        return cls(
            match=data["match_expression"],
            replacement=data.get("replacement", ""),
            ignore=data.get("ignore", False),
            eval_order=data.get("eval_order", 0),
            terminate_chain=data.get("terminate_chain", True),
            replace_all=data.get("replace_all", False),
        )

    def matches(self, name: str) -> bool:
        return self.pattern.search(name) is not None

    def apply(self, name: str) -> str:
        count = 0 if self.replace_all else 1
        return self.pattern.sub(self.replacement, name, count=count)

    def __repr__(self) -> str:
        return f"<NamingRule match={self.match!r} replacement={self.replacement!r} ignore={self.ignore}>"


class RulesEngine(object):
    """An ordered, thread safe collection of naming rules"""

    def __init__(self, rules: Optional[Iterable[NamingRule]] = None) -> None:
        self.lock = threading.Lock()
        self.rules: List[NamingRule] = []
        for rule in rules or []:
            self.add(rule)

    def __len__(self) -> int:
        return len(self.rules)

    def __iter__(self) -> Iterator[NamingRule]:
        return iter(list(self.rules))

    def add(self, rule: NamingRule) -> None:
        with self.lock:
            self.rules.append(rule)
            self.rules.sort(key=lambda r: r.eval_order)

    def merge(self, rule_data: Iterable[Dict[str, Any]]) -> None:
        for data in rule_data or []:
            self.add(NamingRule.from_collector(data))

    def clear(self) -> None:
        with self.lock:
            self.rules = []

    def rename(self, name: str) -> Optional[str]:
        """
        Run <name> through the rules.
        @return: the new name, or None when a matching rule says to ignore it
        """
        for rule in self:
            if not rule.matches(name):
                continue
            if rule.ignore:
                return None
            name = rule.apply(name)
            if rule.terminate_chain:
                break
        return name

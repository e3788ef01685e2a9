"""
Interactive credential acquisition for delegated hostnames.

Delegated hostnames are grouped by nameserver set, on the assumption that one
nameserver set corresponds to one provider account. The operator is asked
once whether to use the provider API at all, then once per group for an
identity and secret. Credentials live in memory for the run only.
"""

import sys
from dataclasses import replace
from typing import Callable, Optional, Protocol, TextIO

from .activity_log import ActivityLogger
from .models import Credentials, HostnameRecord, NameserverGroup


YES_NO_ANSWERS = ("y", "Y", "n", "N")

# Hostnames shown per group before the rest is summarized as "+N more"
PREVIEW_LIMIT = 3


class Prompter(Protocol):
    """Source of operator answers."""

    def prompt(self, message: str, default: str, allowed: Optional[tuple[str, ...]] = None) -> str: ...


class ConsolePrompter:
    """
    Prompter reading answers from the terminal.

    An empty answer is replaced by the default. When allowed answers are
    given, the question is repeated until one of them is entered.
    """

    def __init__(
        self,
        input_func: Callable[[str], str] = input,
        output_stream: Optional[TextIO] = None,
    ) -> None:
        self._input = input_func
        self._output = output_stream or sys.stdout

    def prompt(self, message: str, default: str, allowed: Optional[tuple[str, ...]] = None) -> str:
        while True:
            print(message, file=self._output)
            answer = self._input("> ").strip() or default

            if allowed is None or answer in allowed:
                return answer

            print(f"Please answer one of: {', '.join(allowed)}", file=self._output)


def group_by_nameservers(records: list[HostnameRecord]) -> list[NameserverGroup]:
    """
    Partition delegated records by nameserver set.

    Groups keep the order in which their nameserver set was first seen, and
    hostnames keep their order within a group. Records without provider
    metadata are skipped.
    """
    groups: dict[tuple[str, ...], NameserverGroup] = {}

    for record in records:
        if record.provider is None:
            continue

        key = record.provider.nameservers
        group = groups.setdefault(key, NameserverGroup(nameservers=key))
        if record.name not in group.hostnames:
            group.hostnames.append(record.name)

    return list(groups.values())


def domains_preview(hostnames: list[str], limit: int = PREVIEW_LIMIT) -> str:
    """
    Summarize a group's hostnames for a prompt.

    >>> domains_preview(["a.com", "b.com", "c.com", "d.com", "e.com"])
    'a.com, b.com, c.com, +2 more'
    """
    preview = ", ".join(hostnames[:limit])
    if len(hostnames) > limit:
        preview += f", +{len(hostnames) - limit} more"
    return preview


class CredentialAcquisition:
    """Asks the operator for provider credentials, one nameserver group at a time."""

    def __init__(
        self,
        prompter: Optional[Prompter] = None,
        logger: Optional[ActivityLogger] = None,
    ) -> None:
        self._prompter = prompter or ConsolePrompter()
        self._logger = logger

    def attach_credentials(self, records: list[HostnameRecord]) -> list[HostnameRecord]:
        """
        Collect credentials and attach them to delegated records.

        Args:
            records: Classified hostnames

        Returns:
            The records in input order, delegated ones carrying the credentials
            of their group when the operator supplied any
        """
        groups = group_by_nameservers(records)
        if not groups:
            return records

        answer = self._prompter.prompt(
            f"Detected {len(groups)} provider accounts. "
            "Do you want to use the provider API to check DNS records? [y/N]",
            "N",
            YES_NO_ANSWERS,
        )
        if answer.lower() == "n":
            return records

        by_hostname: dict[str, Credentials] = {}
        for group in groups:
            group.credentials = self._ask_for_group(group)
            if group.credentials is None:
                continue
            for hostname in group.hostnames:
                by_hostname[hostname] = group.credentials

        if self._logger:
            self._logger.info(
                "CredentialAcquisition",
                "Provider accounts configured",
                {
                    "groups": len(groups),
                    "configured_groups": sum(1 for g in groups if g.credentials is not None),
                },
            )

        return [self._with_credentials(record, by_hostname.get(record.name)) for record in records]

    def _ask_for_group(self, group: NameserverGroup) -> Optional[Credentials]:
        answer = self._prompter.prompt(
            f"Would you like to enter credentials for {', '.join(group.nameservers)} "
            f"(domains: {domains_preview(group.hostnames)})? [y/N]",
            "N",
            YES_NO_ANSWERS,
        )
        if answer.lower() == "n":
            return None

        identity = self._prompter.prompt("Email:", "")
        secret = self._prompter.prompt("API Token:", "")
        return Credentials(identity=identity, secret=secret)

    @staticmethod
    def _with_credentials(
        record: HostnameRecord,
        credentials: Optional[Credentials],
    ) -> HostnameRecord:
        if record.provider is None or credentials is None:
            return record
        return replace(record, provider=replace(record.provider, credentials=credentials))

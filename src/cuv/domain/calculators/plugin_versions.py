"""Users per plugin version for JetBrains and VS Code."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from cuv.domain.calculators._helpers import rank_desc
from cuv.models.analytics import PluginVersionAnalysis, PluginVersionEntry
from cuv.models.records import IdeTotal, UsageRecord

JETBRAINS_IDE = "intellij"
VSCODE_IDE = "vscode"
VSCODE_CHAT_PLUGIN = "copilot-chat"

_JETBRAINS_EXCLUDED_SUFFIXES = ("-nightly",)
_VSCODE_EXCLUDED_SUFFIXES = ("-insider", "-nightly")


@dataclass
class PluginVersionAccumulator:
    """Per version, the logins last seen on it."""

    jetbrains: dict[str, set[str]] = field(default_factory=dict)
    vscode: dict[str, set[str]] = field(default_factory=dict)

    def accumulate(self, user_login: str, total: IdeTotal) -> None:
        plugin = total.last_known_plugin_version
        if plugin is None or not plugin.plugin_version:
            return
        version = plugin.plugin_version
        lower = version.lower()

        if total.ide == JETBRAINS_IDE and not lower.endswith(_JETBRAINS_EXCLUDED_SUFFIXES):
            self.jetbrains.setdefault(version, set()).add(user_login)
        elif (
            total.ide == VSCODE_IDE
            and plugin.plugin == VSCODE_CHAT_PLUGIN
            and not lower.endswith(_VSCODE_EXCLUDED_SUFFIXES)
        ):
            self.vscode.setdefault(version, set()).add(user_login)

    def compute(self) -> PluginVersionAnalysis:
        jetbrains, jetbrains_users = _version_entries(self.jetbrains)
        vscode, vscode_users = _version_entries(self.vscode)
        return PluginVersionAnalysis(
            jetbrains=jetbrains,
            vscode=vscode,
            total_unique_intellij_users=jetbrains_users,
            total_unique_vscode_users=vscode_users,
        )


def _version_entries(versions: dict[str, set[str]]) -> tuple[list[PluginVersionEntry], int]:
    all_users: set[str] = set()
    entries: list[PluginVersionEntry] = []
    for version, logins in versions.items():
        all_users |= logins
        entries.append(
            PluginVersionEntry(version=version, user_count=len(logins), usernames=sorted(logins))
        )
    return rank_desc(entries, key=lambda entry: entry.user_count), len(all_users)


def calculate_plugin_versions(records: Sequence[UsageRecord]) -> PluginVersionAnalysis:
    acc = PluginVersionAccumulator()
    for record in records:
        for total in record.totals_by_ide:
            acc.accumulate(record.user_login, total)
    return acc.compute()

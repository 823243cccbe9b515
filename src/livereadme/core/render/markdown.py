"""
Markdown rendering of the terminal-styled profile page.

Two documents are produced: the live profile built from ``ProfileData``
and a static fallback used when data collection fails outright.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from livereadme.core.orchestrator.runner import NO_RECENT_ACTIVITY

if TYPE_CHECKING:
    from livereadme.core.config.models import ProfileConfig
    from livereadme.core.orchestrator.runner import CommitLine, LanguageShare, ProfileData


BAR_CELLS = 20
NAME_WIDTH = 11
STACK_BOX_WIDTH = 51
FALLBACK_RETRY_HOURS = 6

LANGUAGE_TABLE_TOP = """\
┌─────────────┬──────────────────────────┬─────────┐
│ Language    │ Usage Distribution       │ Percent │
├─────────────┼──────────────────────────┼─────────┤"""
LANGUAGE_TABLE_BOTTOM = "└─────────────┴──────────────────────────┴─────────┘"
NO_LANGUAGE_DATA_ROW = "│ n/a         │ no language data         │   0.0%  │"


def language_bar(percent: float) -> str:
    filled = max(0, min(BAR_CELLS, round(percent / (100 / BAR_CELLS))))
    return "█" * filled + "░" * (BAR_CELLS - filled)


def format_language_rows(languages: list[LanguageShare]) -> str:
    """Rows of the language table; the zero-data placeholder when empty."""
    if not languages:
        return NO_LANGUAGE_DATA_ROW
    rows = []
    for share in languages:
        percent = min(share.percent, 99.9)
        name = share.name[:NAME_WIDTH].ljust(NAME_WIDTH)
        rows.append(f"│ {name} │ {language_bar(percent)}     │ {percent:5.1f}%  │")
    return "\n".join(rows)


def format_activity(commits: list[CommitLine], now: datetime) -> str:
    """Activity log lines; a single 'no recent activity' line when empty."""
    if not commits:
        return f"[{now:%Y-%m-%d %I:%M:%S %p}] INFO: {NO_RECENT_ACTIVITY}"
    return "\n".join(
        f'[{c.timestamp:%Y-%m-%d %I:%M:%S %p}] COMMIT: "{c.message}" → {c.repo}'
        for c in commits
    )


def format_tech_stack(stack: dict[str, str]) -> str:
    title = "┌─ CURRENT STACK "
    lines = [title + "─" * (STACK_BOX_WIDTH - len(title)) + "┐"]
    for label, items in stack.items():
        body = f"│ {label:<11} : {items}"
        lines.append(body.ljust(STACK_BOX_WIDTH) + "│")
    lines.append("└" + "─" * (STACK_BOX_WIDTH - 1) + "┘")
    return "\n".join(lines)


def render_profile(data: ProfileData, profile: ProfileConfig) -> str:
    """Render the live profile document."""
    now = data.generated_at
    user = data.username
    tz_label = now.tzname() or profile.timezone

    api_status = "degraded ⚠" if data.degraded else "connected ✓"
    degraded_note = ""
    if data.degraded:
        degraded_note = (
            "\n> ⚠️ Some live data is temporarily unavailable "
            f"(`{', '.join(data.degraded_sources)}`); showing cached or placeholder values.\n"
        )

    return f"""# {user}@github ~/profile LIVE

```bash
$ echo 'initializing dynamic profile shell...'
> booting ── [OK]  bootloader: dynamic
> session: interactive (real-time)
> github-api: {api_status}
```
{degraded_note}
| WHO AM I | LIVE STATUS |
|----------|-------------|
| `> user:` {user} | `> last_updated:` {now:%d/%m/%Y, %H:%M:%S} |
| `> role:` {profile.role} | `> timezone:` {tz_label} |
| `> focus:` {profile.focus} | `> last_commit:` {data.last_commit} |
| `> motto:` {profile.motto} | `> current_commit:` {data.commit_hash} |

## 🔴 LIVE ACTIVITY MONITOR

```bash
$ tail -f ~/.git_activity.log
{format_activity(data.recent_commits, now)}
```

## 📊 CODE PERFORMANCE METRICS

```bash
$ analyze-languages --real-time --visual
{LANGUAGE_TABLE_TOP}
{format_language_rows(data.languages)}
{LANGUAGE_TABLE_BOTTOM}

$ system-info --tech-stack
{format_tech_stack(profile.tech_stack)}
```

---

<div align="center">

[![Profile Views](https://komarev.com/ghpvc/?username={user}&style=flat-square&color=blue)](https://github.com/{user})

<sub>🤖 Auto-generated • Last updated: {now:%B %d %Y, %I:%M:%S %p} {tz_label} • Commit: {data.commit_hash}</sub>

</div>
"""


def render_fallback(
    username: str,
    error_message: str,
    now: datetime,
    profile: ProfileConfig,
) -> str:
    """Render the static fallback document shown when live generation fails."""
    tz_label = now.tzname() or profile.timezone
    next_attempt = now + timedelta(hours=FALLBACK_RETRY_HOURS)
    stamp = f"{now:%Y-%m-%d %H:%M:%S}"

    return f"""# {username}@github ~/profile

<div align="center">
  <img src="https://img.shields.io/badge/Status-Fallback%20Mode-orange?style=for-the-badge&labelColor=000000" />
  <img src="https://img.shields.io/github/followers/{username}?style=for-the-badge&logo=github&labelColor=000000&color=blue" />
</div>

```bash
$ system-status --check --fallback-mode
> primary-systems: 🔄 temporarily offline
> fallback-mode: ✅ active
> error-details: {error_message}
> next-attempt: {next_attempt:%Y-%m-%d %H:%M:%S} {tz_label}
```

## 🛡️ RESILIENT PROFILE SYSTEM

⚠️ **System Notice**: Dynamic content generation temporarily unavailable. Core profile information active.

| 🔧 SYSTEM STATUS | 📊 CURRENT STATE |
|------------------|------------------|
| `> user:` {username} | `> mode:` 🔄 Fallback Active |
| `> role:` {profile.role} | `> last_check:` {now:%d/%m/%Y, %H:%M:%S} {tz_label} |
| `> focus:` {profile.focus} | `> recovery:` 🔄 next scheduled run |

## 💻 CORE TECH STACK (STATIC BACKUP)

```bash
$ cat ~/.tech_stack_backup.txt
{format_tech_stack(profile.tech_stack)}
```

## 🔄 SYSTEM RECOVERY INFORMATION

```bash
$ error-log --recent --summary
[{stamp}] WARN: Primary generator offline
[{stamp}] INFO: Fallback systems activated
[{stamp}] INFO: Auto-recovery scheduled
```

---

<div align="center">

<sub>🛡️ Fallback mode • Generated: {now:%B %d %Y, %I:%M:%S %p} {tz_label}</sub>

</div>
"""

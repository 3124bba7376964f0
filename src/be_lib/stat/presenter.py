# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from collections import Counter
from datetime import datetime

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text
from tabulate import Line, TableFormat, tabulate

from be_lib.core.common import get_panel_width
from be_lib.core.config import CFG
from be_lib.job.job import Job
from be_lib.properties.states import JobState


class StatusPresenter:
    """
    Renders the state and metadata of jobs as a Rich panel or as YAML.
    """

    # ANSI codes of the colors used by job states and table styles
    _ANSI = {
        "white": "\033[37m",
        "green": "\033[32m",
        "grey70": "\033[38;5;249m",
        "bright_red": "\033[91m",
        "bright_green": "\033[92m",
        "bright_yellow": "\033[93m",
        "bright_blue": "\033[94m",
        "bright_magenta": "\033[95m",
    }
    _BOLD = "\033[1m"
    _RESET = "\033[0m"

    # borderless table, columns separated by a single space
    _TABLE_FORMAT = TableFormat(
        lineabove=Line("", "", "", ""),
        linebelowheader="",
        linebetweenrows="",
        linebelow=Line("", "", "", ""),
        headerrow=("", " ", ""),
        datarow=("", " ", ""),
        padding=0,
        with_header_hide=["lineabove", "linebelow"],
    )

    _HEADERS = ["State", "Job ID", "User", "Job Name", "Queue", "Submitted", "Hosts"]

    def __init__(self, jobs: list[Job]):
        self._jobs = jobs

    def createStatusPanel(self, console: Console | None = None) -> Group:
        """
        Build a panel with a table of the jobs followed by per-state job counts.

        The state and metadata of the jobs are shown as they are; query them
        through the job manager first.
        """
        width = get_panel_width(
            console or Console(), 1, CFG.presenter.min_width, CFG.presenter.max_width
        )

        panel = Panel(
            Group(Text.from_ansi(self._createJobsTable()), Text(""), self._createStatesLine()),
            title=Text("JOBS", style=CFG.presenter.title_style, justify="center"),
            border_style=CFG.presenter.border_style,
            padding=(1, 1),
            width=width,
            expand=False,
        )

        return Group(Text(""), panel, Text(""))

    def dumpYaml(self) -> None:
        """Print one YAML document per job to stdout."""
        for job in self._jobs:
            info = job.getJobInfo()
            print(info.toYaml() if info else f"job_id: {job.getJobId()}\n")

    def _createJobsTable(self) -> str:
        # tabulate is used instead of rich.Table which is slow for many rows
        headers = [
            StatusPresenter._color(h, CFG.presenter.headers_style, bold=True)
            for h in StatusPresenter._HEADERS
        ]

        return tabulate(
            [self._createJobRow(job) for job in self._jobs],
            headers=headers,
            tablefmt=StatusPresenter._TABLE_FORMAT,
            stralign="center",
            numalign="center",
        )

    def _createJobRow(self, job: Job) -> list[str]:
        state = job.getJobState()
        info = job.getJobInfo()

        if info:
            values = [
                job.getJobId().shortId or "",
                info.user or "",
                StatusPresenter._shortenJobName(info.job_name or job.name),
                info.queue or "",
                StatusPresenter._formatTime(info.submit_time),
                ",".join(info.exec_hosts or []),
            ]
        else:
            values = [
                job.getJobId().shortId or "",
                "",
                StatusPresenter._shortenJobName(job.name),
                "",
                "",
                "",
            ]

        return [StatusPresenter._color(str(state), state.color)] + [
            StatusPresenter._color(str(v), CFG.presenter.main_style) for v in values
        ]

    def _createStatesLine(self) -> Text:
        counts = Counter(job.getJobState() for job in self._jobs)

        line = Text(" Jobs    ", style="bold")
        # states in the order of their declaration
        for state in (s for s in JobState if counts[s]):
            line.append(f"{state} ", style=f"{state.color} bold")
            line.append(f"{counts[state]}    ")

        line.append("Σ ", style="bold")
        line.append(str(len(self._jobs)))

        return line

    @staticmethod
    def _formatTime(time: datetime | None) -> str:
        return time.strftime(CFG.date_formats.standard) if time else ""

    @staticmethod
    def _shortenJobName(job_name: str) -> str:
        limit = CFG.presenter.max_job_name_length
        return f"{job_name[:limit]}…" if len(job_name) > limit else job_name

    @staticmethod
    def _color(string: str, color: str | None = None, bold: bool = False) -> str:
        """
        Wrap a string in ANSI codes. Unknown colors (e.g. `default`) are ignored.
        """
        prefix = (StatusPresenter._BOLD if bold else "") + StatusPresenter._ANSI.get(
            color or "", ""
        )
        if not prefix:
            return string

        return f"{prefix}{string}{StatusPresenter._RESET}"

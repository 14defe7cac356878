# Author: PB & Claude
# Maintainer: PB
# Original date: 2026.10.18
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# tests/test_display.py

from io import StringIO

from rich.console import Console

from mclone.system.display import display_info, format_task, info_lines


def test_info_report_layout(make_session, volume_dirs):
    session = make_session()
    alpha = session.format_volume(volume_dirs["alpha"])
    beta = session.format_volume(volume_dirs["beta"])
    task = session.create_task("update", volume_dirs["alpha"] / "docs", volume_dirs["beta"],
                               include="*.pdf", exclude="*.tmp")

    lines = info_lines(session, "1.2.3")

    assert lines[0] == "# Mclone version 1.2.3"
    assert lines[1] == "## Volumes"
    assert f"* [{alpha.id}] :: ({alpha.root})" in lines
    assert lines[4] == "## Intact tasks"
    assert lines[5] == (f"* [{task.id}] :: update [{alpha.id}](docs) -> [{beta.id}]() "
                        f":: include *.pdf :: exclude *.tmp")
    assert "## Stale tasks" not in lines


def test_stale_task_marks_missing_volume(make_session, volume_dirs):
    session = make_session()
    session.format_volume(volume_dirs["alpha"])
    session.format_volume(volume_dirs["beta"])
    task = session.create_task("copy", volume_dirs["alpha"], volume_dirs["beta"] / "backup",
                               crypter_mode="encrypt", crypter_token="tok")
    session.commit()

    only_alpha = make_session().restore_volumes([volume_dirs["alpha"]])
    line = format_task(only_alpha, only_alpha.tasks.get(task.id))

    assert line == (f"* <{task.id}> :: encrypt+copy [{task.source_id}]() -> "
                    f"<{task.destination_id}>(backup)")
    assert info_lines(only_alpha, "0")[-2] == "## Stale tasks"


def test_display_info_prints_brackets_verbatim(session, volume_dirs):
    volume = session.format_volume(volume_dirs["alpha"])
    out = StringIO()
    display_info(Console(file=out, width=40), session, "0.1.0")
    assert f"* [{volume.id}] :: (" in out.getvalue()
    assert "## Volumes" in out.getvalue()

from __future__ import annotations

from unittest.mock import patch

from asset_import.services.progress import PIPELINE_STAGES, StageProgress


def test_disabled_without_tty():
    with patch("asset_import.services.progress.is_tty_enabled", return_value=False):
        with StageProgress("Importing categories") as progress:
            assert progress.pbar is None
            for stage in PIPELINE_STAGES:
                progress.start(stage)
                progress.finish(stage)
    assert progress.completed == list(PIPELINE_STAGES)


def test_enabled_on_tty_advances_once_per_stage():
    with patch("asset_import.services.progress.is_tty_enabled", return_value=True):
        with patch("asset_import.services.progress.tqdm") as tqdm_cls:
            bar = tqdm_cls.return_value
            progress = StageProgress("Importing assets")
            progress.start("parse")
            progress.finish("parse", rows=3)
            progress.close()
    tqdm_cls.assert_called_once()
    assert tqdm_cls.call_args.kwargs["total"] == len(PIPELINE_STAGES)
    bar.update.assert_called_once_with(1)
    bar.set_postfix.assert_called_once_with(rows=3)
    bar.close.assert_called_once()
    assert progress.pbar is None

"""Tests for TaskArgs conversion to the base vocabularies."""

import pytest

from xtaskctl.domain.args import TaskArgs
from xtaskctl.domain.errors import UnsupportedVariantError
from xtaskctl.domain.subcommands import CHECK_SUBCOMMANDS, CheckSubcommand
from xtaskctl.domain.targets import TARGETS, Target
from xtaskctl.domain.vocabulary import VariantSpec, compose

TARGETS_EXT = compose(TARGETS, [VariantSpec("frontend")])
CHECKS_EXT = compose(CHECK_SUBCOMMANDS, [VariantSpec("spelling")])


class TestDowncast:
    def test_base_fields_convert(self) -> None:
        args = TaskArgs(
            target=TARGETS_EXT.enum("crates"),
            subcommand=CHECKS_EXT.enum("lint"),
            exclude=("alpha",),
        )
        base = args.downcast(targets=TARGETS_EXT, subcommands=CHECKS_EXT)
        assert base.target is Target.CRATES
        assert base.subcommand is CheckSubcommand.LINT
        assert base.exclude == ("alpha",)

    def test_target_fails_first(self) -> None:
        args = TaskArgs(target=TARGETS_EXT.enum("frontend"), subcommand=CHECKS_EXT.enum("spelling"))
        with pytest.raises(UnsupportedVariantError) as exc_info:
            args.downcast(targets=TARGETS_EXT, subcommands=CHECKS_EXT)
        assert exc_info.value.variant == "frontend"

    def test_host_subcommand_fails(self) -> None:
        args = TaskArgs(target=TARGETS_EXT.enum("crates"), subcommand=CHECKS_EXT.enum("spelling"))
        with pytest.raises(UnsupportedVariantError, match="spelling is not supported."):
            args.downcast(targets=TARGETS_EXT, subcommands=CHECKS_EXT)

    def test_absent_fields_stay_absent(self) -> None:
        assert TaskArgs().downcast(targets=TARGETS_EXT, subcommands=CHECKS_EXT) == TaskArgs()


class TestIsHost:
    def test_base_only(self) -> None:
        args = TaskArgs(target=TARGETS_EXT.enum("crates"), subcommand=CHECKS_EXT.enum("lint"))
        assert not args.is_host(targets=TARGETS_EXT, subcommands=CHECKS_EXT)

    @pytest.mark.parametrize(
        "target,subcommand", [("frontend", "lint"), ("crates", "spelling")]
    )
    def test_any_host_field(self, target: str, subcommand: str) -> None:
        args = TaskArgs(
            target=TARGETS_EXT.enum(target), subcommand=CHECKS_EXT.enum(subcommand)
        )
        assert args.is_host(targets=TARGETS_EXT, subcommands=CHECKS_EXT)


class TestOptions:
    def test_downcast_keeps_named_options(self) -> None:
        args = TaskArgs(options={"threads": 2, "features_set": "web"})
        assert args.downcast(options={"threads"}).options == {"threads": 2}

    def test_downcast_without_names_keeps_all(self) -> None:
        args = TaskArgs(options={"features_set": "web"})
        assert args.downcast().options == {"features_set": "web"}

"""
Generation plan — the ordered, named edit steps applied to a copied tree.

Steps touching the same file depend on each other's output:

* ``strip-feature-manifest`` and ``rewrite-identity`` both edit
  ``pyproject.toml``. The feature strip only removes the client library
  line, so the identity rewrite still finds the template's ``name = ...``
  line afterwards.
* ``narrow-imports`` must follow ``strip-feature-entrypoint`` and
  ``strip-feature-settings``, which remove every use of the narrowed
  name in those files.

Keeping the plan as data lets tests assert the order instead of relying
on call order buried in the generator.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from app.cli.errors import InvalidNameError
from app.cli.transforms import (
    BlockSkip,
    FirstReplace,
    ImportNarrowing,
    IndentedBlockRemoval,
    LineFilter,
    LiteralRemoval,
    MarkerSkip,
    PairedLineFilter,
    ReplaceAll,
    Transform,
)

# ── Template identity ───────────────────────────────────────────────

TEMPLATE_NAME = "service-template"
TEMPLATE_MODULE_NAME = "service_template"
MANIFEST = "pyproject.toml"
ENTRYPOINT = "app/main.py"
SETTINGS = "app/core/config/settings.py"
GENERATOR_SCRIPT = 'svc-template = "app.cli.main:cli"'

MAX_NAME_LENGTH = 100
FORBIDDEN_NAME_CHARS = '<>:"|?*\\/'

# ── Optional feature: event streaming ───────────────────────────────

FEATURE_PACKAGE = "kafka"
FEATURE_FILES = (
    "app/adapters/kafka_producer.py",
    "app/core/interfaces/event_producer.py",
    "app/core/models/events.py",
    "tests/test_kafka_producer.py",
)
FEATURE_CONFIG_TYPE = "KafkaConfig"
FEATURE_STATE_FIELD = "event_producer"
FEATURE_COMPOSE_SERVICES = ("zookeeper:", "kafka:", "kafka-ui:")

SETTINGS_BLOCK_START = "Kafka configuration for event streaming"
SETTINGS_BLOCK_END = "CORS (Cross-Origin Resource Sharing) configuration"
# producer_options field factory + KAFKA_PRODUCER_DEFAULTS table
SETTINGS_BLOCK_MIN = 2
DEFAULTS_DOCSTRING = '"""Uses defaults when unset."""'

IDENTITY_STEP = "rewrite-identity"

WIDE_IMPORT = "from app.core.interfaces import EventProducer, TaskRepository"
NARROW_IMPORT = "from app.core.interfaces import TaskRepository"


@dataclass(frozen=True)
class ProjectIdentity:
    """Name of the generated project and its importable form."""

    name: str

    @property
    def module_name(self) -> str:
        return self.name.replace("-", "_")

    @classmethod
    def parse(cls, name: str) -> ProjectIdentity:
        """Validate a project name.

        Raises:
            InvalidNameError: Empty, longer than 100 characters, starting
                with ``.`` or ``-``, or containing ``< > : " | ? * \\ /``.
        """
        if not name:
            raise InvalidNameError("Service name cannot be empty")
        if len(name) > MAX_NAME_LENGTH:
            raise InvalidNameError(
                f"Service name cannot be longer than {MAX_NAME_LENGTH} characters"
            )
        if name[0] in ".-":
            raise InvalidNameError("Service name cannot start with '.' or '-'")
        if any(c in FORBIDDEN_NAME_CHARS for c in name):
            raise InvalidNameError(
                'Service name contains invalid characters: < > : " | ? * \\ /'
            )
        return cls(name)


@dataclass(frozen=True)
class FileEdit:
    """Transforms applied in order to one file of the target tree."""

    path: str
    transforms: tuple[Transform, ...]
    required: bool = True


@dataclass(frozen=True)
class Step:
    """One named stage of the plan.

    ``requires`` and ``ensures`` document the file state the step expects
    and leaves behind; they are shown in debug logs.
    """

    name: str
    requires: str
    ensures: str
    remove: tuple[str, ...] = ()
    edits: tuple[FileEdit, ...] = field(default_factory=tuple)
    feature_strip: bool = False


def build_plan(identity: ProjectIdentity, with_events: bool = True) -> list[Step]:
    """Return the ordered steps for one generation run."""
    steps = [
        Step(
            name="unregister-generator",
            requires="app/cli/ was not copied",
            ensures="the library root no longer exports the generator package",
            edits=(
                FileEdit("app/__init__.py", (LineFilter(('"cli",', "project generator")),)),
            ),
        ),
    ]

    if not with_events:
        steps += _feature_strip_steps()

    steps.append(
        Step(
            name=IDENTITY_STEP,
            requires=f'manifest still declares name = "{TEMPLATE_NAME}"',
            ensures="manifest and entry point carry the new project name",
            edits=(
                FileEdit(
                    MANIFEST,
                    (
                        FirstReplace(
                            f'name = "{TEMPLATE_NAME}"', f'name = "{identity.name}"'
                        ),
                        LiteralRemoval(GENERATOR_SCRIPT),
                    ),
                ),
                FileEdit(
                    ENTRYPOINT,
                    (ReplaceAll(TEMPLATE_MODULE_NAME, identity.module_name),),
                ),
            ),
        )
    )
    return steps


def _feature_strip_steps() -> list[Step]:
    return [
        Step(
            name="remove-feature-files",
            requires="tree copied",
            ensures="event streaming modules and their tests are gone",
            remove=FEATURE_FILES,
            feature_strip=True,
        ),
        Step(
            name="strip-feature-manifest",
            requires="manifest lists the client library",
            ensures="client library dependency removed; name line untouched",
            edits=(FileEdit(MANIFEST, (LineFilter(("kafka-python",)),)),),
            feature_strip=True,
        ),
        Step(
            name="strip-feature-exports",
            requires="feature files removed",
            ensures="package roots no longer import the removed modules",
            edits=(
                FileEdit(
                    "app/adapters/__init__.py",
                    (
                        LineFilter(
                            ("kafka_producer", "KafkaEventService", "PublishingTaskRepository")
                        ),
                    ),
                ),
                FileEdit(
                    "app/core/interfaces/__init__.py",
                    (LineFilter(("event_producer", "EventProducer")),),
                ),
                FileEdit(
                    "app/core/models/__init__.py",
                    (LineFilter(("events", "TaskEvent", "EventMetadata")),),
                ),
            ),
            feature_strip=True,
        ),
        Step(
            name="strip-feature-settings",
            requires="settings define the producer config section before CORS",
            ensures="no producer config type, defaults, field or state slot remain",
            edits=(
                FileEdit(
                    SETTINGS,
                    (
                        PairedLineFilter(f"kafka_config: {FEATURE_CONFIG_TYPE}", DEFAULTS_DOCSTRING),
                        LineFilter((FEATURE_STATE_FIELD,)),
                        BlockSkip(SETTINGS_BLOCK_START, SETTINGS_BLOCK_END, SETTINGS_BLOCK_MIN),
                    ),
                ),
            ),
            feature_strip=True,
        ),
        Step(
            name="strip-feature-entrypoint",
            requires="bootstrap() wires the producer just before building AppState",
            ensures="bootstrap() builds AppState from the plain repository",
            edits=(
                FileEdit(
                    ENTRYPOINT,
                    (
                        LineFilter(("kafka_producer",)),
                        MarkerSkip("Initializing Kafka event producer", "app_state = AppState("),
                        LineFilter((f"{FEATURE_STATE_FIELD}=",)),
                    ),
                ),
            ),
            feature_strip=True,
        ),
        Step(
            name="narrow-imports",
            requires="the producer interface is no longer referenced",
            ensures="only TaskRepository is imported from the interfaces package",
            edits=(
                FileEdit(SETTINGS, (ImportNarrowing(WIDE_IMPORT, NARROW_IMPORT),)),
                FileEdit(ENTRYPOINT, (ImportNarrowing(WIDE_IMPORT, NARROW_IMPORT),)),
            ),
            feature_strip=True,
        ),
        Step(
            name="strip-feature-environment",
            requires="tree copied",
            ensures="local env files and compose stack carry no broker settings",
            edits=(
                FileEdit(".env.example", (LineFilter(("KAFKA", "Kafka")),), required=False),
                FileEdit("run.sh", (LineFilter(("KAFKA", "Kafka")),), required=False),
                FileEdit(
                    "docker-compose.yaml",
                    (
                        IndentedBlockRemoval(FEATURE_COMPOSE_SERVICES),
                        LineFilter(("KAFKA",)),
                    ),
                    required=False,
                ),
            ),
            feature_strip=True,
        ),
    ]

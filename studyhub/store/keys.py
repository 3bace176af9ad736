"""Keyspace design for the shared single-table layout.

Every entity type owns one ``EntityKeys`` implementation that maps its
identifiers to a partition key, a sort key, and the secondary-index keys of
each query shape it supports. These are pure functions: the same inputs
always give the same keys, and no validation happens here. Callers check id
formats (``validate_key``) before deriving keys.

Layout
------
=========================  ==================================  ===============================
item                       primary key (PK / SK)               secondary index
=========================  ==================================  ===============================
experiment                 EXPERIMENT#{id} / METADATA          GSI1: EXPERIMENT / createdAt
membership                 EXPERIMENT#{id} / MEMBER#{pid}      GSI1: USER#{pid} / EXPERIMENT#{id}
protocol session           EXPERIMENT#{id} / PROTOCOL#{key}
session                    SESSION#{eid}#{sid} / METADATA      GSI1: EXPERIMENT#{eid} / SESSION#{sid}
task                       TASK#{key} / METADATA               GSI1: TASK / createdAt
questionnaire              QUESTIONNAIRE#{id} / CONFIG         GSI1: QUESTIONNAIRE / updatedAt
response                   RESPONSE#{id} / METADATA            GSI1: EXPERIMENT#{eid} / SESSION#..#TASK#..#{id}
                                                               GSI2: USER#{pid} / {updatedAt}#{id}
=========================  ==================================  ===============================
"""

from __future__ import annotations

import re
from abc import ABC
from typing import ClassVar, NamedTuple

from studyhub.errors import ValidationError

KEY_PATTERN = re.compile(r"^[A-Z0-9_]{3,64}$")

PARTITION_ATTR = "PK"
SORT_ATTR = "SK"


class IndexSpec(NamedTuple):
    """Name and key attributes of a secondary index."""

    name: str
    partition_attr: str
    sort_attr: str


GSI1 = IndexSpec("GSI1", "GSI1PK", "GSI1SK")
GSI2 = IndexSpec("GSI2", "GSI2PK", "GSI2SK")


class ItemKey(NamedTuple):
    """Primary key of one item."""

    pk: str
    sk: str

    def as_dict(self) -> dict[str, str]:
        """Return the key as top-level item attributes."""
        return {PARTITION_ATTR: self.pk, SORT_ATTR: self.sk}


class IndexKey(NamedTuple):
    """Secondary-index key of one item."""

    index: IndexSpec
    pk: str
    sk: str

    def as_dict(self) -> dict[str, str]:
        """Return the index key as top-level item attributes."""
        return {self.index.partition_attr: self.pk, self.index.sort_attr: self.sk}


def normalize_key(raw: str) -> str:
    """Trim and uppercase a researcher-chosen key such as a task key.

    Examples
    --------
    >>> normalize_key("  stroop_v2 ")
    'STROOP_V2'
    """
    return raw.strip().upper()


def validate_key(raw: str, label: str = "key") -> str:
    """Normalize a researcher-chosen key and check its format.

    Parameters
    ----------
    raw : str
        Key as supplied by the caller.
    label : str
        Name used in the error message, e.g. "taskKey".

    Returns
    -------
    str
        The normalized key.

    Raises
    ------
    ValidationError
        If the normalized key does not match ``^[A-Z0-9_]{3,64}$``.

    Examples
    --------
    >>> validate_key("pvt")
    'PVT'
    """
    key = normalize_key(raw or "")
    if not KEY_PATTERN.match(key):
        raise ValidationError(
            f"Invalid {label} '{raw}': expected 3-64 characters of A-Z, 0-9 or _",
            field=label,
        )
    return key


def require_id(raw: str | None, label: str) -> str:
    """Trim an opaque identifier and reject blanks.

    Raises
    ------
    ValidationError
        If the identifier is None or blank.
    """
    value = (raw or "").strip()
    if not value:
        raise ValidationError(f"{label} is required", field=label)
    return value


class EntityKeys(ABC):
    """Key derivation for one entity type.

    Subclasses set ``entity_type`` (the partition prefix) and provide
    ``primary`` plus one method per supported secondary-index query shape.
    """

    entity_type: ClassVar[str]
    separator: ClassVar[str] = "#"

    @classmethod
    def partition(cls, *parts: str) -> str:
        """Build a partition key from the type prefix and identifier parts."""
        return cls.separator.join((cls.entity_type, *parts))

    @classmethod
    def parse_id(cls, pk: str) -> str:
        """Recover the identifier from a partition key.

        Raises
        ------
        ValueError
            If ``pk`` does not belong to this entity type.
        """
        prefix = f"{cls.entity_type}{cls.separator}"
        if not pk.startswith(prefix):
            raise ValueError(f"Not a {cls.entity_type} key: {pk!r}")
        return pk[len(prefix) :]


class ExperimentKeys(EntityKeys):
    """Experiment root record and the newest-first listing index."""

    entity_type = "EXPERIMENT"
    metadata_sk = "METADATA"
    list_partition = "EXPERIMENT"

    @classmethod
    def primary(cls, experiment_id: str) -> ItemKey:
        return ItemKey(cls.partition(experiment_id), cls.metadata_sk)

    @classmethod
    def all_experiments(cls, created_at: str) -> IndexKey:
        return IndexKey(GSI1, cls.list_partition, created_at)


class MembershipKeys(EntityKeys):
    """Membership rows in the experiment partition (adjacency list)."""

    entity_type = "EXPERIMENT"
    member_prefix = "MEMBER#"
    participant_prefix = "USER#"

    @classmethod
    def primary(cls, experiment_id: str, participant_id: str) -> ItemKey:
        return ItemKey(
            cls.partition(experiment_id), f"{cls.member_prefix}{participant_id}"
        )

    @classmethod
    def members_of(cls, experiment_id: str) -> tuple[str, str]:
        """Partition key and sort-key prefix for an experiment's members."""
        return cls.partition(experiment_id), cls.member_prefix

    @classmethod
    def participant_experiments(
        cls, participant_id: str, experiment_id: str
    ) -> IndexKey:
        return IndexKey(
            GSI1,
            f"{cls.participant_prefix}{participant_id}",
            ExperimentKeys.partition(experiment_id),
        )

    @classmethod
    def participant_partition(cls, participant_id: str) -> str:
        return f"{cls.participant_prefix}{participant_id}"

    @classmethod
    def parse_participant(cls, sk: str) -> str:
        return sk[len(cls.member_prefix) :]


class ProtocolSessionKeys(EntityKeys):
    """Protocol session definitions in the experiment partition."""

    entity_type = "EXPERIMENT"
    protocol_prefix = "PROTOCOL#"

    @classmethod
    def primary(cls, experiment_id: str, protocol_key: str) -> ItemKey:
        return ItemKey(
            cls.partition(experiment_id), f"{cls.protocol_prefix}{protocol_key}"
        )

    @classmethod
    def protocols_of(cls, experiment_id: str) -> tuple[str, str]:
        return cls.partition(experiment_id), cls.protocol_prefix


class SessionKeys(EntityKeys):
    """Scheduled session occurrences and the per-experiment index."""

    entity_type = "SESSION"
    metadata_sk = "METADATA"
    index_prefix = "SESSION#"

    @classmethod
    def primary(cls, experiment_id: str, session_id: str) -> ItemKey:
        return ItemKey(cls.partition(experiment_id, session_id), cls.metadata_sk)

    @classmethod
    def experiment_sessions(cls, experiment_id: str, session_id: str) -> IndexKey:
        return IndexKey(
            GSI1,
            ExperimentKeys.partition(experiment_id),
            f"{cls.index_prefix}{session_id}",
        )

    @classmethod
    def parse_session(cls, index_sk: str) -> str:
        return index_sk[len(cls.index_prefix) :]


class TaskKeys(EntityKeys):
    """Task definitions and the newest-first listing index."""

    entity_type = "TASK"
    metadata_sk = "METADATA"
    list_partition = "TASK"

    @classmethod
    def primary(cls, task_key: str) -> ItemKey:
        return ItemKey(cls.partition(task_key), cls.metadata_sk)

    @classmethod
    def all_tasks(cls, created_at: str) -> IndexKey:
        return IndexKey(GSI1, cls.list_partition, created_at)


class QuestionnaireKeys(EntityKeys):
    """Questionnaire definitions in the questionnaire collection."""

    entity_type = "QUESTIONNAIRE"
    config_sk = "CONFIG"
    list_partition = "QUESTIONNAIRE"

    @classmethod
    def primary(cls, questionnaire_id: str) -> ItemKey:
        return ItemKey(cls.partition(questionnaire_id), cls.config_sk)

    @classmethod
    def all_questionnaires(cls, updated_at: str) -> IndexKey:
        return IndexKey(GSI1, cls.list_partition, updated_at)


class ResponseKeys(EntityKeys):
    """Questionnaire responses and their two retrieval indexes."""

    entity_type = "RESPONSE"
    metadata_sk = "METADATA"
    participant_prefix = "USER#"

    @classmethod
    def primary(cls, response_id: str) -> ItemKey:
        return ItemKey(cls.partition(response_id), cls.metadata_sk)

    @classmethod
    def experiment_responses(
        cls, experiment_id: str, session_id: str, task_id: str, response_id: str
    ) -> IndexKey:
        return IndexKey(
            GSI1,
            ExperimentKeys.partition(experiment_id),
            f"SESSION#{session_id}#TASK#{task_id}#{response_id}",
        )

    @classmethod
    def session_scope(cls, session_id: str | None, task_id: str | None = None) -> str:
        """Sort-key prefix narrowing an experiment's responses.

        Examples
        --------
        >>> ResponseKeys.session_scope("S1")
        'SESSION#S1#'
        >>> ResponseKeys.session_scope("S1", "PVT")
        'SESSION#S1#TASK#PVT#'
        """
        if not session_id:
            return "SESSION#"
        if task_id is None:
            return f"SESSION#{session_id}#"
        return f"SESSION#{session_id}#TASK#{task_id}#"

    @classmethod
    def participant_responses(
        cls, participant_id: str, updated_at: str, response_id: str
    ) -> IndexKey:
        return IndexKey(
            GSI2,
            f"{cls.participant_prefix}{participant_id}",
            f"{updated_at}#{response_id}",
        )

    @classmethod
    def participant_partition(cls, participant_id: str) -> str:
        return f"{cls.participant_prefix}{participant_id}"

"""Entity lifecycle and access-pattern layer for multi-participant research studies.

Researchers define experiments, protocol sessions, and tasks; participants
enroll, run sessions, and submit questionnaire responses. All persistent state
lives in a single partition/sort-key document store with secondary indexes.
"""

from __future__ import annotations

__version__ = "0.1.0"

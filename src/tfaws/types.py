"""
Type definitions for tfaws.

boto3 service clients are generated at runtime and ship no static stubs, so
client aliases are plain ``Any``; they exist to make signatures readable.
"""

from typing import Any, Callable, Dict, List, Optional, TypeVar

# AWS client types
AppFlowClient = Any
BackupClient = Any
ELBv2Client = Any
GrafanaClient = Any
RUMClient = Any
SQSClient = Any
STSClient = Any

# Tag types
TagMap = Dict[str, str]
TagList = List[Dict[str, str]]
ReservedKeyPredicate = Callable[[str], bool]

# Search types
T = TypeVar("T")
Predicate = Callable[[T], bool]
ContinuationToken = Optional[str]

# Request description carried by not-found errors for diagnostics
RequestDescription = Optional[Dict[str, Any]]

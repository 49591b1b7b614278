from .archive_errors import (
    ArchiveError,
    ValidationFailure,
    NotFound,
    InvalidArgument,
    AlreadyExists,
    IOFailure,
)
from .path_matcher import (
    AntPattern,
    PatternSet,
    PathMatcher,
    CandidateEntry,
    FileStats,
    DEFAULT_EXCLUDES,
    select,
)
from .path_utils import (
    OverwriteArbiter,
    ResolvedDestination,
    canonical_path,
    prepare_destination,
)
from .archive_security import SelfReferenceGuard, exclude_self
from .archive_creators import (
    ArchiveCreator,
    TarArchiveCreator,
    ArchiveCreatorFactory,
    ProgressReporter,
    write,
)
from .report import ArchiveOutcome, summarize
from .artifacts import ArtifactRegistrar, DirectoryArtifactRegistrar
from .archive_verifier import ArchiveVerifier

# Main entry points
from .archive_manager import (
    ArchiveManager,
    ArchiveRequest,
    run_tar_step,
    create_tar_archive,
)

__all__ = [
    # Errors
    "ArchiveError",
    "ValidationFailure",
    "NotFound",
    "InvalidArgument",
    "AlreadyExists",
    "IOFailure",
    # File selection
    "AntPattern",
    "PatternSet",
    "PathMatcher",
    "CandidateEntry",
    "FileStats",
    "DEFAULT_EXCLUDES",
    "select",
    # Destination handling
    "OverwriteArbiter",
    "ResolvedDestination",
    "canonical_path",
    "prepare_destination",
    "SelfReferenceGuard",
    "exclude_self",
    # Archive writing
    "ArchiveCreator",
    "TarArchiveCreator",
    "ArchiveCreatorFactory",
    "ProgressReporter",
    "write",
    # Reporting
    "ArchiveOutcome",
    "summarize",
    # Collaborators
    "ArtifactRegistrar",
    "DirectoryArtifactRegistrar",
    "ArchiveVerifier",
    # Orchestration
    "ArchiveManager",
    "ArchiveRequest",
    "run_tar_step",
    "create_tar_archive",
]

"""Service layer for gist operations."""

from gixt.services.clone import CloneService
from gixt.services.describe import DescribeService, GistDescription
from gixt.services.index import IndexRefreshResult, IndexService, OwnerIndexResult
from gixt.services.manifest import ManifestOptions, ManifestResult, ManifestService
from gixt.services.materializer import FileMaterializer
from gixt.services.planner import CommandPlanner
from gixt.services.process import ProcessRunner
from gixt.services.remove import RemoveResult, RemoveService
from gixt.services.resolver import IdentifierResolver
from gixt.services.run import RunOptions, RunService
from gixt.services.updates import UpdateResult, check_for_updates

__all__ = [
    'CloneService',
    'CommandPlanner',
    'DescribeService',
    'FileMaterializer',
    'GistDescription',
    'IdentifierResolver',
    'IndexRefreshResult',
    'IndexService',
    'ManifestOptions',
    'ManifestResult',
    'ManifestService',
    'OwnerIndexResult',
    'ProcessRunner',
    'RemoveResult',
    'RemoveService',
    'RunOptions',
    'RunService',
    'UpdateResult',
    'check_for_updates',
]

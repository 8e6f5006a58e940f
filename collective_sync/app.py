"""Explicit wiring of adapters, services and state containers.

Nothing here is global: every call to :func:`build_services` returns an
independent graph, and containers receive their dependencies and scope key
as constructor arguments.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import httpx

from .adapters.base import BlobStorage, DocumentStore
from .adapters.blob import FirebaseBlobStorage
from .adapters.firestore import FirestoreStore
from .adapters.identity import (
    FirebaseAuthProvider,
    Identity,
    IdentityProvider,
    LocalIdentityProvider,
)
from .config import Settings
from .core.storage import JSONDocumentStore
from .core.subscription import Subscription
from .invitations import InvitationResolver
from .services import (
    CollectiveService,
    InvoiceService,
    ProjectService,
    TaskService,
    UserProfileService,
)
from .state import (
    CollectiveListState,
    InvoiceListState,
    MemberListState,
    ProfileState,
    ProjectListState,
    TaskListState,
)


@dataclass
class Services:
    store: DocumentStore
    identity: IdentityProvider
    blobs: BlobStorage | None = None
    collectives: CollectiveService = field(init=False)
    projects: ProjectService = field(init=False)
    tasks: TaskService = field(init=False)
    invoices: InvoiceService = field(init=False)
    users: UserProfileService = field(init=False)
    invitations: InvitationResolver = field(init=False)

    def __post_init__(self) -> None:
        self.collectives = CollectiveService(self.store)
        self.projects = ProjectService(self.store)
        self.tasks = TaskService(self.store)
        self.invoices = InvoiceService(self.store)
        self.users = UserProfileService(self.store, self.blobs)
        self.invitations = InvitationResolver(self.users, self.collectives)

    # ------------------------------------------------------------------
    # Container factories
    def collective_list(self) -> CollectiveListState:
        current = self.identity.current_identity()
        return CollectiveListState(
            self.collectives, self.invitations, current.uid if current else None
        )

    def project_list(self, collective_id: str) -> ProjectListState:
        return ProjectListState(self.projects, collective_id)

    def task_list(self, project_id: str) -> TaskListState:
        return TaskListState(self.tasks, project_id)

    def invoice_list(self, collective_id: str) -> InvoiceListState:
        return InvoiceListState(self.invoices, collective_id)

    def member_list(self, collective_id: str) -> MemberListState:
        return MemberListState(self.collectives, self.users, collective_id)

    def profile(self) -> ProfileState:
        return ProfileState(self.users, self.identity)


def track_token(identity: IdentityProvider, *targets: object) -> Subscription:
    """Keep the ``id_token`` of each target in step with the signed-in user."""

    async def update(current: Identity | None) -> None:
        for target in targets:
            target.id_token = current.id_token if current else None  # type: ignore[attr-defined]

    return identity.on_identity_change(update)


def build_services(settings: Settings, client: httpx.AsyncClient | None = None) -> Services:
    """Build the service graph for ``settings``.

    Without a project id everything runs locally against a JSON file.
    """
    if settings.local_mode:
        return Services(JSONDocumentStore(settings.data_path), LocalIdentityProvider())

    client = client or httpx.AsyncClient()
    store = FirestoreStore(
        settings.project_id,
        settings.database,
        client=client,
        emulator_host=settings.emulator_host,
    )
    identity = FirebaseAuthProvider(settings.api_key, client=client)
    blobs = None
    if settings.storage_bucket:
        blobs = FirebaseBlobStorage(settings.storage_bucket, client=client)
    track_token(identity, store, *([blobs] if blobs else []))
    return Services(store, identity, blobs)

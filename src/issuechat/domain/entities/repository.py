"""Identity of the remote issue collection being synced."""

from pydantic import BaseModel, ConfigDict, Field


class LabelTaxonomy(BaseModel):
    """Label names the chat room relies on."""

    model_config = ConfigDict(frozen=True)

    chat: str = "chat"
    urgent: str = "urgent"
    discussion: str = "discussion"


class RepositoryConfig(BaseModel):
    """Repository whose issues are synced as chat messages.

    Attributes:
        owner: Repository owner (user or organization).
        name: Repository name.
        labels: Label taxonomy; `labels.chat` is added to every sent message.
    """

    model_config = ConfigDict(frozen=True)

    owner: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    labels: LabelTaxonomy = Field(default_factory=LabelTaxonomy)

    @classmethod
    def from_slug(
        cls, slug: str, labels: LabelTaxonomy | None = None
    ) -> "RepositoryConfig":
        """Build a config from an `owner/name` slug.

        Args:
            slug: Repository slug.
            labels: Label taxonomy, defaults to the standard one.

        Returns:
            The repository config.

        Raises:
            ValueError: If the slug is not of the form `owner/name`.
        """
        owner, sep, name = slug.strip().partition("/")
        if not sep or not owner or not name or "/" in name:
            raise ValueError(f"Invalid repository slug: {slug!r}")
        return cls(owner=owner, name=name, labels=labels or LabelTaxonomy())

    @property
    def slug(self) -> str:
        """Return the `owner/name` slug."""
        return f"{self.owner}/{self.name}"

"""
The main entrypoint for the ShadowLink package.

This module contains the ShadowLink application class, which wires the
pillars (layout, llm, store, auth, tools, url, engine) behind a Dash UI shell.
Every pillar can be swapped by passing an implementation to the constructor.
"""

from typing import Optional

from dash import Dash

from . import auth, engine, layout, llm, store, tools, url
from .actions import Actions
from .config import Settings, get_settings
from .dashboard import Dashboard


def build_llm(settings: Settings) -> "llm.LLM":
    """Creates the LLM provider named by ``LLM_PROVIDER``."""
    if settings.LLM_PROVIDER == "echo":
        return llm.Echo()
    if settings.LLM_PROVIDER == "openai":
        return llm.OpenAI(
            default_model=settings.LLM_MODEL,
            api_key=settings.OPENAI_API_KEY.get_secret_value() or None,
        )
    return llm.Gemini(
        default_model=settings.LLM_MODEL,
        api_key=settings.GEMINI_API_KEY.get_secret_value() or None,
    )


def build_store(settings: Settings) -> "store.Store":
    """Creates the store named by ``STORE_BACKEND``."""
    if settings.STORE_BACKEND == "memory":
        return store.InMemory(title_length=settings.CONVERSATION_TITLE_LENGTH)
    return store.Firestore(
        project=settings.FIRESTORE_PROJECT,
        database=settings.FIRESTORE_DATABASE,
        title_length=settings.CONVERSATION_TITLE_LENGTH,
    )


class ShadowLink(Dash):
    """
    The ShadowLink chat application.

    This class acts as the composition root: it holds one instance of each
    pillar and hands itself to the engine, the dashboard aggregator and the
    action surface, which read the pillars from it. The store and LLM client
    are created once here and reused by every request.
    """

    def __init__(
        self,
        layout: Optional["layout.Layout"] = None,
        llm: Optional["llm.LLM"] = None,
        store: Optional["store.Store"] = None,
        auth: Optional["auth.Auth"] = None,
        tools: Optional["tools.Tool"] = None,
        url: Optional["url.URL"] = None,
        engine: Optional["engine.Engine"] = None,
        settings: Optional[Settings] = None,
        **kwargs,
    ) -> None:
        """
        Initialize the ShadowLink application with configurable pillars.

        Parameters
        ----------
        layout : layout.Layout, optional
            Layout builder for constructing the Dash component tree.
            Defaults to layout.Bootstrap().
        llm : llm.LLM, optional
            Hosted model provider. Defaults to the one named by the
            ``LLM_PROVIDER`` setting.
        store : store.Store, optional
            Persistence gateway. Defaults to the one named by the
            ``STORE_BACKEND`` setting.
        auth : auth.Auth, optional
            Identifies the current user. Defaults to auth.SingleUser(). An
            auth created without an app is bound to this one.
        tools : tools.Tool, optional
            Tools offered to the model. Defaults to tools.TopicExtractor(),
            which the future-self projection needs.
        url : url.URL, optional
            Path parsing and building. Defaults to url.PathBased(), which
            the default layout also uses for its links.
        engine : engine.Engine, optional
            Chat turn orchestrator. Defaults to engine.Synchronous(). An
            engine created without an app is bound to this one.
        settings : Settings, optional
            Defaults to the cached environment settings.
        **kwargs
            Additional arguments passed to the Dash constructor.

        Raises
        ------
        ValueError
            If the layout is missing component IDs the callbacks need.

        Examples
        --------
        >>> app = ShadowLink(llm=llm.Echo(), store=store.InMemory())
        """
        layout_module = globals()["layout"]
        auth_module = globals()["auth"]
        tools_module = globals()["tools"]
        url_module = globals()["url"]
        engine_module = globals()["engine"]

        url = url if url is not None else url_module.PathBased()
        self.layout_builder = (
            layout if layout is not None else layout_module.Bootstrap(url=url)
        )

        kwargs.setdefault("external_stylesheets", [])
        kwargs["external_stylesheets"].extend(
            self.layout_builder.get_external_stylesheets()
        )
        kwargs.setdefault("external_scripts", [])
        kwargs["external_scripts"].extend(self.layout_builder.get_external_scripts())
        kwargs.setdefault("title", "ShadowLink")

        super().__init__(**kwargs)

        self.settings = settings if settings is not None else get_settings()
        self.llm = llm if llm is not None else build_llm(self.settings)
        self.store = store if store is not None else build_store(self.settings)
        self.auth = auth if auth is not None else auth_module.SingleUser()
        self.tools = tools if tools is not None else tools_module.TopicExtractor()
        self.url = url

        self.engine = engine if engine is not None else engine_module.Synchronous()
        if self.engine.app is None:
            self.engine.app = self
        self.dashboard = Dashboard(self)
        self.actions = Actions(self)
        if getattr(self.auth, "app", None) is None:
            self.auth.app = self

        self.layout = self.layout_builder.build_layout()
        self.layout_builder.validate(self.layout)
        self._register_callbacks()

    def _register_callbacks(self) -> None:
        """Registers all the callbacks that orchestrate the pillars."""
        from .callbacks import register_callbacks

        register_callbacks(self)

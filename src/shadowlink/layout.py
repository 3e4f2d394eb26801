"""Layout builders for the Dash UI shell."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Set

import dash_bootstrap_components as dbc
from dash import dcc, html
from dash.development.base_component import Component as DashComponent

from .models import USER_SENDER, ConversationSummary, Message
from .url import URL, PathBased

REQUIRED_IDS = {
    "url_location",
    "sidebar",
    "sidebar_toggle",
    "conversations_list",
    "new_conversation_button",
    "dashboard_link",
    "chat_view",
    "messages_container",
    "input_textarea",
    "submit_button",
    "status_indicator",
    "error_alert",
    "dashboard_view",
    "dashboard_content",
}


def collect_ids(component: Any) -> Set[str]:
    """Returns every string component id in a Dash component tree."""
    ids: Set[str] = set()
    stack = [component]
    while stack:
        node = stack.pop()
        if isinstance(node, (list, tuple)):
            stack.extend(node)
            continue
        if not isinstance(node, DashComponent):
            continue
        node_id = getattr(node, "id", None)
        if isinstance(node_id, str):
            ids.add(node_id)
        children = getattr(node, "children", None)
        if children is not None:
            stack.append(children)
    return ids


class Layout(ABC):
    """Interface for building the Dash component layout."""

    @abstractmethod
    def build_layout(self) -> DashComponent:
        """Constructs and returns the entire Dash component tree for the UI."""
        pass

    @abstractmethod
    def build_messages(self, messages: List[Message]) -> List[DashComponent]:
        """Converts a list of messages into renderable Dash components."""
        pass

    @abstractmethod
    def build_conversation_items(
        self, conversations: List[ConversationSummary], paths: Dict[str, str]
    ) -> List[DashComponent]:
        """Renders sidebar entries; ``paths`` maps conversation ids to links."""
        pass

    @abstractmethod
    def build_dashboard(self, data: Dict[str, Any]) -> List[DashComponent]:
        """Renders the dashboard aggregate returned by the action surface."""
        pass

    def get_external_stylesheets(self) -> List[Any]:
        return []

    def get_external_scripts(self) -> List[Any]:
        return []

    def validate(self, component: DashComponent) -> None:
        """Raises ValueError when ``component`` lacks ids the callbacks rely on."""
        missing = REQUIRED_IDS - collect_ids(component)
        if missing:
            raise ValueError(
                f"Layout is missing required component IDs: {', '.join(sorted(missing))}"
            )


class Bootstrap(Layout):
    """The default chat and dashboard layout, styled with Bootstrap.

    Header and sidebar links are built by ``url`` (PathBased by default).
    """

    def __init__(self, url: Optional[URL] = None):
        self.url = url if url is not None else PathBased()

    def get_external_stylesheets(self) -> List[Any]:
        return [dbc.themes.BOOTSTRAP, dbc.icons.BOOTSTRAP]

    def build_layout(self) -> DashComponent:
        """Constructs the main layout Div."""
        return html.Div(
            className="d-flex flex-column vh-100",
            children=[
                dcc.Location(id="url_location", refresh=False),
                self.build_header(),
                self.build_sidebar(),
                dbc.Alert(
                    id="error_alert",
                    color="danger",
                    is_open=False,
                    dismissable=True,
                    className="m-2",
                ),
                self.build_chat_view(),
                self.build_dashboard_view(),
            ],
        )

    def build_header(self) -> DashComponent:
        return html.Header(
            className="p-2 bg-light border-bottom",
            children=[
                dbc.Container(
                    fluid=True,
                    children=[
                        dbc.Row(
                            align="center",
                            children=[
                                dbc.Col(
                                    dbc.Button(
                                        html.I(className="bi bi-list"),
                                        id="sidebar_toggle",
                                        n_clicks=0,
                                        color="light",
                                    ),
                                    width="auto",
                                ),
                                dbc.Col(html.H4("ShadowLink", className="m-0")),
                                dbc.Col(
                                    dbc.Button(
                                        "Dashboard",
                                        id="dashboard_link",
                                        href=self.url.build_dashboard_path(),
                                        color="secondary",
                                        outline=True,
                                    ),
                                    width="auto",
                                ),
                            ],
                        )
                    ],
                )
            ],
        )

    def build_sidebar(self) -> DashComponent:
        return dbc.Offcanvas(
            id="sidebar",
            is_open=False,
            title="Conversations",
            children=[
                dbc.Button(
                    "New Chat",
                    id="new_conversation_button",
                    href=self.url.build_new_chat_path(),
                    color="primary",
                    className="w-100 mb-3",
                ),
                dbc.ListGroup(id="conversations_list", children=[]),
            ],
        )

    def build_chat_view(self) -> DashComponent:
        return html.Div(
            id="chat_view",
            className="d-flex flex-column flex-grow-1",
            style={"overflow": "hidden"},
            children=[
                html.Main(
                    id="messages_container",
                    className="flex-grow-1 p-3",
                    style={"overflowY": "auto"},
                ),
                html.Footer(
                    className="p-3 bg-light border-top",
                    children=[
                        html.Div(
                            id="status_indicator",
                            hidden=True,
                            className="text-muted small mb-2",
                            children=[dbc.Spinner(size="sm"), " Shadow is typing..."],
                        ),
                        dbc.InputGroup(
                            [
                                dbc.Textarea(
                                    id="input_textarea",
                                    placeholder="Type a message...",
                                    rows=2,
                                ),
                                dbc.Button(
                                    "Send",
                                    id="submit_button",
                                    color="primary",
                                    n_clicks=0,
                                ),
                            ]
                        ),
                    ],
                ),
            ],
        )

    def build_dashboard_view(self) -> DashComponent:
        return html.Div(
            id="dashboard_view",
            hidden=True,
            className="p-3 flex-grow-1",
            style={"overflowY": "auto"},
            children=[dcc.Loading(html.Div(id="dashboard_content"))],
        )

    def build_messages(self, messages: List[Message]) -> List[DashComponent]:
        if not messages:
            return []
        return [self.build_message(msg) for msg in messages]

    def build_message(self, message: Message) -> DashComponent:
        style = {
            "padding": "10px",
            "borderRadius": "15px",
            "marginBottom": "10px",
            "maxWidth": "70%",
            "width": "fit-content",
        }
        if message.sender == USER_SENDER:
            style["marginLeft"] = "auto"
            style["backgroundColor"] = "#dcf8c6"
        else:
            style["marginRight"] = "auto"
            style["backgroundColor"] = "#ffffff"
            style["border"] = "1px solid #eee"

        return html.Div(dcc.Markdown(message.text), style=style)

    def build_conversation_items(
        self, conversations: List[ConversationSummary], paths: Dict[str, str]
    ) -> List[DashComponent]:
        return [
            dbc.ListGroupItem(conv.title, href=paths[conv.id], action=True)
            for conv in conversations
        ]

    def build_dashboard(self, data: Dict[str, Any]) -> List[DashComponent]:
        if "error" in data:
            return [dbc.Alert(data["error"], color="danger")]

        stats = [
            ("Conversations", data["total_conversations"]),
            ("Messages", data["total_messages"]),
            ("Your messages", data["user_messages"]),
            ("AI messages", data["ai_messages"]),
        ]
        children: List[DashComponent] = [
            dbc.Row(
                [
                    dbc.Col(
                        dbc.Card(
                            dbc.CardBody([html.H6(label), html.H3(str(value))])
                        )
                    )
                    for label, value in stats
                ],
                className="mb-3",
            ),
            html.H5("Last 7 days"),
            dbc.Table(
                [html.Thead(html.Tr([html.Th("Day"), html.Th("You"), html.Th("AI")]))]
                + [
                    html.Tbody(
                        [
                            html.Tr(
                                [
                                    html.Td(day["date"]),
                                    html.Td(day["user"]),
                                    html.Td(day["ai"]),
                                ]
                            )
                            for day in data["message_volume"]
                        ]
                    )
                ],
                bordered=True,
                size="sm",
            ),
        ]

        analysis = data.get("trajectory_analysis")
        if analysis:
            children += [
                html.H5("Your style"),
                html.P([html.B("Writing style: "), analysis["writing_style"]]),
                html.P([html.B("Tone: "), analysis["tone"]]),
                html.P([html.B("Response patterns: "), analysis["response_patterns"]]),
            ]
        future_self = data.get("future_self")
        if future_self:
            children += [
                html.H5(f"Future self: {future_self['topic']}"),
                html.Blockquote(future_self["projection"], className="blockquote"),
            ]
        if not analysis and not future_self:
            children.append(
                html.P(
                    "Keep chatting: style analysis unlocks after a few more messages.",
                    className="text-muted",
                )
            )
        return children

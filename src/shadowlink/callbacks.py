"""Dash callbacks wiring the layout to the action surface."""

from dash import Input, Output, State, no_update

from .models import ConversationSummary, Message


def register_callbacks(app):
    @app.callback(
        [
            Output("messages_container", "children"),
            Output("input_textarea", "value"),
            Output("url_location", "pathname", allow_duplicate=True),
            Output("error_alert", "children"),
            Output("error_alert", "is_open"),
        ],
        [Input("submit_button", "n_clicks")],
        [
            State("input_textarea", "value"),
            State("url_location", "pathname"),
        ],
        running=[
            (Output("status_indicator", "hidden"), False, True),
            (Output("submit_button", "disabled"), True, False),
        ],
        prevent_initial_call=True,
    )
    def send_message(n_clicks, user_input, pathname):
        if not n_clicks or not user_input or not user_input.strip():
            return no_update, no_update, no_update, no_update, no_update

        user_id = app.auth.get_current_user_id(pathname=pathname)
        convo_id = app.url.parse(pathname).convo_id
        result = app.actions.send_message(user_id, convo_id, user_input)
        if not result["success"]:
            return no_update, no_update, no_update, result["error"], True

        convo_id = result["conversation_id"]
        loaded = app.actions.get_conversation(user_id, convo_id)
        messages = _messages(loaded)
        return (
            app.layout_builder.build_messages(messages),
            "",
            app.url.build_conversation_path(convo_id),
            no_update,
            False,
        )

    @app.callback(
        [
            Output("messages_container", "children", allow_duplicate=True),
            Output("chat_view", "hidden"),
            Output("dashboard_view", "hidden"),
            Output("error_alert", "children", allow_duplicate=True),
            Output("error_alert", "is_open", allow_duplicate=True),
        ],
        [Input("url_location", "pathname")],
        prevent_initial_call="initial_duplicate",
    )
    def load_view(pathname):
        url_parts = app.url.parse(pathname)
        if url_parts.page == "dashboard":
            return no_update, True, False, no_update, False
        if not url_parts.convo_id:
            return [], False, True, no_update, False

        user_id = app.auth.get_current_user_id(pathname=pathname)
        loaded = app.actions.get_conversation(user_id, url_parts.convo_id)
        if not loaded["success"]:
            return [], False, True, loaded["error"], True
        messages = _messages(loaded)
        return app.layout_builder.build_messages(messages), False, True, no_update, False

    @app.callback(
        Output("dashboard_content", "children"),
        [Input("url_location", "pathname")],
    )
    def load_dashboard(pathname):
        if app.url.parse(pathname).page != "dashboard":
            return no_update
        user_id = app.auth.get_current_user_id(pathname=pathname)
        data = app.actions.get_dashboard_data(user_id)
        return app.layout_builder.build_dashboard(data)

    @app.callback(
        Output("conversations_list", "children"),
        [
            Input("url_location", "pathname"),
            Input("messages_container", "children"),
        ],
    )
    def update_conversation_list(pathname, chat_messages):
        user_id = app.auth.get_current_user_id(pathname=pathname)
        result = app.actions.get_conversations(user_id)
        if not result["success"]:
            return []
        conversations = [
            ConversationSummary.model_validate(conv) for conv in result["conversations"]
        ]
        paths = {
            conv.id: app.url.build_conversation_path(conv.id) for conv in conversations
        }
        return app.layout_builder.build_conversation_items(conversations, paths)

    @app.callback(
        Output("sidebar", "is_open"),
        [Input("sidebar_toggle", "n_clicks")],
        [State("sidebar", "is_open")],
        prevent_initial_call=True,
    )
    def toggle_sidebar(toggle_clicks, is_open):
        if not toggle_clicks:
            return no_update
        return not is_open

    _register_clientside_callbacks(app)


def _messages(result):
    if not result.get("success"):
        return []
    return [
        Message.model_validate(msg) for msg in result["conversation"]["messages"]
    ]


def _register_clientside_callbacks(app):
    app.clientside_callback(
        """
        function(pathname) {
            // Set up enter to send functionality when page loads/changes
            setTimeout(function() {
                const textarea = document.getElementById('input_textarea');
                const submitButton = document.getElementById('submit_button');

                if (textarea && submitButton && !window.enterListenerSetup) {
                    window.enterListenerSetup = true;

                    window.enterToSendHandler = function(e) {
                        if (e.key === 'Enter' && !e.shiftKey) {
                            e.preventDefault();
                            if (textarea.value.trim()) {
                                submitButton.click();
                            }
                        }
                    };

                    textarea.addEventListener('keydown', window.enterToSendHandler);
                }
            }, 100);

            return window.dash_clientside.no_update;
        }
        """,
        Output("submit_button", "n_clicks", allow_duplicate=True),
        [Input("url_location", "pathname")],
        prevent_initial_call=True,
    )

    # Auto-scroll to bottom
    app.clientside_callback(
        """
        function(messages_content) {
            if (messages_content && messages_content.length > 0) {
                setTimeout(function() {
                    const messagesContainer = document.getElementById('messages_container');
                    if (messagesContainer) {
                        messagesContainer.scrollTop = messagesContainer.scrollHeight;
                    }
                }, 100);
            }
            return window.dash_clientside.no_update;
        }
        """,
        Output("messages_container", "data-scroll-trigger", allow_duplicate=True),
        [Input("messages_container", "children")],
        prevent_initial_call=True,
    )

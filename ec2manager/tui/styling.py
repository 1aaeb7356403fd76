"""CSS for the dashboard TUI."""

TUI_CSS = """
Screen {
    layers: base overlay;
}

#instance-panel {
    height: 1fr;
    border: round $primary;
    border-title-color: $primary;
}

InstanceTable {
    height: 1fr;
}

#status-bar {
    height: 1;
    dock: bottom;
}

#status {
    width: 1fr;
    color: $text-muted;
}

#refreshed {
    width: 25;
    text-align: right;
    color: $text-muted;
}

#type-picker {
    layer: overlay;
    display: none;
    width: 80%;
    height: 60%;
    offset: 10% 20%;
    background: $surface;
}

#type-input {
    height: 3;
    border: round $accent;
    border-title-color: $accent;
}

TypeTable {
    height: 1fr;
    border: round $accent;
}

#dialog {
    layer: overlay;
    display: none;
    width: 60%;
    height: auto;
    min-height: 5;
    offset: 20% 40%;
    padding: 1 2;
    background: $surface;
    border: thick $primary;
}

#dialog.error {
    border: thick $error;
}

#dialog-title {
    text-align: center;
    text-style: bold;
    padding-bottom: 1;
}

#dialog-body {
    text-align: center;
    text-style: bold;
    color: $error;
}
"""

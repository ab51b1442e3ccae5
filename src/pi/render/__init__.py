"""pi-render: declarative terminal UI rendering with minimal redraws."""

# Canvas and output
from pi.render.canvas import Canvas, CanvasView, Cell, Rect

# Components (re-exported from components package)
from pi.render.components import (
    BorderTitle,
    Box,
    BoxProps,
    Button,
    ButtonProps,
    ContextProvider,
    Fragment,
    MixedText,
    MixedTextContent,
    MixedTextProps,
    Modal,
    ModalProps,
    Text,
    TextInput,
    TextInputProps,
    TextProps,
)

# Configuration
from pi.render.config import RenderOptions

# Elements and component kinds
from pi.render.element import Component, Element, NoProps, Props, component

# Errors
from pi.render.errors import (
    ContextNotFoundError,
    ContractViolation,
    DuplicateKeyError,
    HookOrderError,
    PropsError,
    RenderError,
    RenderOutputError,
    ReservedPropError,
    TerminalError,
)

# Hooks
from pi.render.hooks import Hooks, Ref, State, SystemContext, TaskHandle

# Input events
from pi.render.input import InputDecoder, KeyEvent, MouseEvent, PasteEvent, ResizeEvent

# Layout
from pi.render.layout import LayoutProps, LayoutStyle

# Render loop and entry points
from pi.render.loop import RenderLoop, print_element, render_to_string, run, run_sync

# Style vocabulary
from pi.render.style import BorderCharacters, CellStyle

# Terminal interface and implementations
from pi.render.terminal import ProcessTerminal, Terminal, session

# Tree
from pi.render.tree import Phase, Tree

__all__ = [
    # Canvas
    "Canvas",
    "CanvasView",
    "Cell",
    "Rect",
    # Components
    "BorderTitle",
    "Box",
    "BoxProps",
    "Button",
    "ButtonProps",
    "ContextProvider",
    "Fragment",
    "MixedText",
    "MixedTextContent",
    "MixedTextProps",
    "Modal",
    "ModalProps",
    "Text",
    "TextInput",
    "TextInputProps",
    "TextProps",
    # Config
    "RenderOptions",
    # Elements
    "Component",
    "Element",
    "NoProps",
    "Props",
    "component",
    # Errors
    "ContextNotFoundError",
    "ContractViolation",
    "DuplicateKeyError",
    "HookOrderError",
    "PropsError",
    "RenderError",
    "RenderOutputError",
    "ReservedPropError",
    "TerminalError",
    # Hooks
    "Hooks",
    "Ref",
    "State",
    "SystemContext",
    "TaskHandle",
    # Input
    "InputDecoder",
    "KeyEvent",
    "MouseEvent",
    "PasteEvent",
    "ResizeEvent",
    # Layout
    "LayoutProps",
    "LayoutStyle",
    # Loop
    "RenderLoop",
    "print_element",
    "render_to_string",
    "run",
    "run_sync",
    # Style
    "BorderCharacters",
    "CellStyle",
    # Terminal
    "ProcessTerminal",
    "Terminal",
    "session",
    # Tree
    "Phase",
    "Tree",
]

"""Built-in components."""

from pi.render.components.box import Box, BorderTitle, BoxComponent, BoxProps
from pi.render.components.button import Button, ButtonComponent, ButtonProps
from pi.render.components.fragment import (
    ContextProvider,
    ContextProviderComponent,
    ContextProviderProps,
    Fragment,
    FragmentComponent,
)
from pi.render.components.mixed_text import (
    MixedText,
    MixedTextComponent,
    MixedTextContent,
    MixedTextProps,
)
from pi.render.components.modal import Modal, ModalComponent, ModalProps
from pi.render.components.text import Text, TextComponent, TextProps
from pi.render.components.text_input import TextInput, TextInputComponent, TextInputProps

__all__ = [
    "BorderTitle",
    "Box",
    "BoxComponent",
    "BoxProps",
    "Button",
    "ButtonComponent",
    "ButtonProps",
    "ContextProvider",
    "ContextProviderComponent",
    "ContextProviderProps",
    "Fragment",
    "FragmentComponent",
    "MixedText",
    "MixedTextComponent",
    "MixedTextContent",
    "MixedTextProps",
    "Modal",
    "ModalComponent",
    "ModalProps",
    "Text",
    "TextComponent",
    "TextInput",
    "TextInputComponent",
    "TextInputProps",
    "TextProps",
]

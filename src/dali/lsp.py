"""Minimal LSP server for Dali: diagnostics only."""

from __future__ import annotations

from lsprotocol.types import (
    TEXT_DOCUMENT_DID_CHANGE,
    TEXT_DOCUMENT_DID_OPEN,
    Diagnostic,
    DiagnosticSeverity,
    DidChangeTextDocumentParams,
    DidOpenTextDocumentParams,
    Position,
    PublishDiagnosticsParams,
    Range,
    TextDocumentSyncKind,
)
from pygls.lsp.server import LanguageServer

from dali.errors import DaliError, LexErrorGroup, ParseError, ResolveError
from dali.lexer import Lexer
from dali.parser import Parser
from dali.resolver import Resolver
from dali.source import SourceBuffer

server = LanguageServer("dali-lsp", "0.1.0", text_document_sync_kind=TextDocumentSyncKind.Full)


def _to_diagnostic(exc: DaliError) -> Diagnostic:
    # LSP positions are 0-based; the end character is exclusive
    loc = exc.source.location(exc.span)
    line = loc.line - 1
    return Diagnostic(
        range=Range(
            start=Position(line=line, character=loc.first_column - 1),
            end=Position(line=line, character=loc.last_column),
        ),
        message=exc.message,
        severity=DiagnosticSeverity.Error,
        source="dali",
    )


def _validate(ls: LanguageServer, uri: str) -> None:
    """Run lex, parse, and resolve, then publish diagnostics. Never evaluates."""
    doc = ls.workspace.get_text_document(uri)
    filename = uri.rsplit("/", 1)[-1] if "/" in uri else uri
    source = SourceBuffer(doc.source, filename)
    diagnostics: list[Diagnostic] = []

    try:
        tokens = Lexer(source).tokenize()
        statements = Parser(tokens, source).parse()
        Resolver(source).resolve(statements)
    except LexErrorGroup as group:
        diagnostics.extend(_to_diagnostic(err) for err in group.errors)
    except (ParseError, ResolveError) as exc:
        diagnostics.append(_to_diagnostic(exc))

    ls.text_document_publish_diagnostics(
        PublishDiagnosticsParams(uri=uri, diagnostics=diagnostics)
    )


@server.feature(TEXT_DOCUMENT_DID_OPEN)
def did_open(ls: LanguageServer, params: DidOpenTextDocumentParams) -> None:
    _validate(ls, params.text_document.uri)


@server.feature(TEXT_DOCUMENT_DID_CHANGE)
def did_change(ls: LanguageServer, params: DidChangeTextDocumentParams) -> None:
    _validate(ls, params.text_document.uri)


def main() -> None:
    server.start_io()

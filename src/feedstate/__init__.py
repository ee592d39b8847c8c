from feedstate.schema import Column, TableSchema, TypeTag
from feedstate.gateway import GatewayFactory, RowGateway, SqlGatewayFactory
from feedstate.reader import parse, read, read_json, verify
from feedstate.writer import write, write_document
from feedstate.state import read_json_file, write_json_file

__all__ = [
    "Column", "TableSchema", "TypeTag",
    "GatewayFactory", "RowGateway", "SqlGatewayFactory",
    "parse", "read", "read_json", "verify",
    "write", "write_document",
    "read_json_file", "write_json_file",
]

# -*- coding: utf-8 -*-

from opentelemetry.semconv._incubating.attributes import db_attributes
from opentelemetry.semconv.attributes import exception_attributes, server_attributes


class Attributes:
    COMPONENT = "component"
    DB_NAME = db_attributes.DB_NAME
    DB_OPERATION = db_attributes.DB_OPERATION
    DB_STATEMENT = db_attributes.DB_STATEMENT
    DB_SYSTEM = db_attributes.DB_SYSTEM
    DB_USER = db_attributes.DB_USER
    EXCEPTION_ESCAPED = exception_attributes.EXCEPTION_ESCAPED
    EXCEPTION_MESSAGE = exception_attributes.EXCEPTION_MESSAGE
    EXCEPTION_STACKTRACE = exception_attributes.EXCEPTION_STACKTRACE
    EXCEPTION_TYPE = exception_attributes.EXCEPTION_TYPE
    MYSQL_ERROR_NUMBER = "db.mysql.error_number"
    SERVER_ADDRESS = server_attributes.SERVER_ADDRESS
    SERVER_PORT = server_attributes.SERVER_PORT


DB_SYSTEM_MYSQL = "mysql"
COMPONENT_MYSQL = "mysql"

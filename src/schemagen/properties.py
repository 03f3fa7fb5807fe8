"""JPA 2.1 / EclipseLink 프로퍼티 키."""
from __future__ import annotations

TRANSACTION_TYPE = "javax.persistence.transactionType"
JTA_DATASOURCE = "javax.persistence.jtaDataSource"
NON_JTA_DATASOURCE = "javax.persistence.nonJtaDataSource"
VALIDATION_MODE = "javax.persistence.validation.mode"

JDBC_DRIVER = "javax.persistence.jdbc.driver"
JDBC_URL = "javax.persistence.jdbc.url"
JDBC_USER = "javax.persistence.jdbc.user"
JDBC_PASSWORD = "javax.persistence.jdbc.password"

SCHEMA_GENERATION_SCRIPTS_ACTION = "javax.persistence.schema-generation.scripts.action"
SCHEMA_GENERATION_DATABASE_ACTION = "javax.persistence.schema-generation.database.action"
SCHEMA_GENERATION_SCRIPTS_CREATE_TARGET = "javax.persistence.schema-generation.scripts.create-target"
SCHEMA_GENERATION_SCRIPTS_DROP_TARGET = "javax.persistence.schema-generation.scripts.drop-target"

SCHEMA_GENERATION_NONE_ACTION = "none"
SCHEMA_GENERATION_CREATE_ACTION = "create"
SCHEMA_GENERATION_DROP_ACTION = "drop"
SCHEMA_GENERATION_DROP_AND_CREATE_ACTION = "drop-and-create"

APP_LOCATION = "eclipselink.application-location"
TARGET_DATABASE = "eclipselink.target-database"

RESOURCE_LOCAL = "RESOURCE_LOCAL"
VALIDATION_NONE = "NONE"

# 디버그 덤프 시 값을 가리는 키
SECRET_KEYS = frozenset({JDBC_PASSWORD})

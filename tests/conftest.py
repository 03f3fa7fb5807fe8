from __future__ import annotations
from pathlib import Path

import pytest

from schemagen import properties as P

PERSISTENCE_NS = 'xmlns="https://jakarta.ee/xml/ns/persistence" version="3.0"'
ORM_NS = 'xmlns="https://jakarta.ee/xml/ns/persistence/orm" version="3.0"'


def write(root: Path, rel: str, text: str) -> Path:
    p = root / rel
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(text, encoding="utf-8")
    return p


def persistence_xml(units: str) -> str:
    return f"<persistence {PERSISTENCE_NS}>{units}</persistence>"


def orm_xml(body: str) -> str:
    return f"<entity-mappings {ORM_NS}>{body}</entity-mappings>"


CUSTOMER_JAVA = """
package com.acme;

import jakarta.persistence.*;

@Entity
public class Customer {
    @Id
    @GeneratedValue(strategy = GenerationType.IDENTITY)
    private Long id;

    @Column(name = "full_name", length = 100, nullable = false)
    private String name;

    private static final long serialVersionUID = 1L;

    @Transient
    private String cache;
}
"""

STATUS_JAVA = """
package com.acme;

public enum Status { NEW, PAID }
"""

PURCHASE_JAVA = """
package com.acme;

import java.math.BigDecimal;
import jakarta.persistence.*;

@Entity
@Table(name = "purchases")
public class Purchase {
    @Id
    private Long id;

    @ManyToOne
    private Customer customer;

    @Enumerated(EnumType.STRING)
    private Status status;

    @Column(precision = 12, scale = 2)
    private BigDecimal total;
}
"""


@pytest.fixture
def orders_root(tmp_path: Path) -> Path:
    """메타데이터만 있는(소스 없는) Order 엔티티 하나를 가진 리소스 루트."""
    root = tmp_path / "resources"
    write(root, "META-INF/persistence.xml", persistence_xml(
        '<persistence-unit name="orders-pu"><class>com.acme.Order</class></persistence-unit>'
    ))
    write(root, "META-INF/orm.xml", orm_xml("""
        <package>com.acme</package>
        <entity class="Order" access="VIRTUAL">
          <table name="orders"/>
          <attributes>
            <id name="id" attribute-type="java.lang.Long"/>
            <basic name="description" attribute-type="String"><column length="120"/></basic>
          </attributes>
        </entity>
    """))
    return root


@pytest.fixture
def shop_root(tmp_path: Path) -> Path:
    """어노테이션 엔티티 소스(Customer, Purchase)와 enum 을 가진 루트."""
    root = tmp_path / "shop"
    write(root, "META-INF/persistence.xml", persistence_xml("""
        <persistence-unit name="shop">
          <class>com.acme.Customer</class>
          <class>com.acme.Purchase</class>
          <properties>
            <property name="javax.persistence.jdbc.url" value="jdbc:h2:mem:shop"/>
          </properties>
        </persistence-unit>
    """))
    write(root, "com/acme/Customer.java", CUSTOMER_JAVA)
    write(root, "com/acme/Status.java", STATUS_JAVA)
    write(root, "com/acme/Purchase.java", PURCHASE_JAVA)
    return root


@pytest.fixture
def script_props(tmp_path: Path) -> dict:
    out = tmp_path / "out"
    out.mkdir()
    return {
        P.APP_LOCATION: str(out),
        P.SCHEMA_GENERATION_SCRIPTS_ACTION: P.SCHEMA_GENERATION_DROP_AND_CREATE_ACTION,
        P.SCHEMA_GENERATION_DATABASE_ACTION: P.SCHEMA_GENERATION_NONE_ACTION,
        P.SCHEMA_GENERATION_SCRIPTS_CREATE_TARGET: "create.sql",
        P.SCHEMA_GENERATION_SCRIPTS_DROP_TARGET: "drop.sql",
        P.JDBC_DRIVER: "org.h2.Driver",
        P.JDBC_URL: "jdbc:h2:mem:db",
    }

import pytest

from conftest import orm_xml, persistence_xml
from schemagen.provider import metadata as M
from schemagen.provider.descriptor import parse_mapping_file, parse_persistence_xml
from schemagen.provider.errors import PersistenceError


def test_units_classes_and_properties():
    units = parse_persistence_xml(persistence_xml("""
        <persistence-unit name="a">
          <provider>org.eclipse.persistence.jpa.PersistenceProvider</provider>
          <mapping-file>META-INF/extra.xml</mapping-file>
          <class>com.acme.Order</class>
          <exclude-unlisted-classes/>
          <properties><property name="eclipselink.target-database" value="MySQL"/></properties>
        </persistence-unit>
        <persistence-unit name="b">
          <exclude-unlisted-classes>false</exclude-unlisted-classes>
        </persistence-unit>
    """))
    a, b = units
    assert a.name == "a"
    assert a.classes == ["com.acme.Order"]
    assert a.mapping_files == ["META-INF/extra.xml"]
    assert a.exclude_unlisted_classes is True
    assert a.properties == {"eclipselink.target-database": "MySQL"}
    assert a.provider.endswith("PersistenceProvider")
    assert b.exclude_unlisted_classes is False


def test_legacy_namespace_is_accepted():
    text = (
        '<persistence xmlns="http://java.sun.com/xml/ns/persistence" version="2.0">'
        '<persistence-unit name="old"><class>x.Y</class></persistence-unit></persistence>'
    )
    [unit] = parse_persistence_xml(text)
    assert unit.classes == ["x.Y"]


def test_malformed_descriptor():
    with pytest.raises(PersistenceError):
        parse_persistence_xml("<persistence><persistence-unit", source="broken.xml")
    with pytest.raises(PersistenceError):
        parse_persistence_xml(persistence_xml("<persistence-unit/>"))


def test_mapping_file_entities():
    [order, line] = parse_mapping_file(orm_xml("""
        <package>com.acme</package>
        <entity class="Order" name="PurchaseOrder" access="VIRTUAL">
          <table name="orders" schema="sales"/>
          <attributes>
            <id name="id" attribute-type="Long"><generated-value strategy="sequence"/></id>
            <basic name="state"><enumerated>STRING</enumerated></basic>
            <version name="rev" attribute-type="int"/>
            <many-to-many name="tags" target-entity="Tag">
              <join-table name="order_tag">
                <join-column name="order_id"/>
                <inverse-join-column name="tag_id"/>
              </join-table>
            </many-to-many>
            <transient name="cache"/>
          </attributes>
        </entity>
        <entity class="org.other.Line">
          <attributes>
            <many-to-one name="order" target-entity="Order"><join-column name="ord" nullable="false"/></many-to-one>
          </attributes>
        </entity>
    """))

    assert order.class_name == "com.acme.Order"
    assert order.entity_name == "PurchaseOrder"
    assert (order.table, order.schema) == ("orders", "sales")
    assert order.virtual

    attrs = order.attributes
    assert attrs["id"].kind == M.ID and attrs["id"].generation == "SEQUENCE"
    assert attrs["state"].enumerated == "STRING"
    assert attrs["rev"].kind == M.VERSION
    assert attrs["tags"].target_entity == "com.acme.Tag"
    assert attrs["tags"].join_table == M.JoinTableDef("order_tag", "order_id", "tag_id")
    assert attrs["cache"].kind == M.TRANSIENT

    assert line.class_name == "org.other.Line"
    assert line.package == "org.other"
    assert line.attributes["order"].join_column == "ord"
    assert line.attributes["order"].join_nullable is False


def test_mapping_column_ints():
    with pytest.raises(PersistenceError):
        parse_mapping_file(orm_xml(
            '<entity class="a.B"><attributes><basic name="x"><column length="long"/></basic></attributes></entity>'
        ))

"""Fixed auxiliary parts written into every exported package."""

from datetime import datetime, timezone
from html import escape
from typing import Optional

from docx.opc.constants import CONTENT_TYPE as CT
from docx.opc.constants import RELATIONSHIP_TYPE as RT

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>\n'

W3CDTF_FORMAT = '%Y-%m-%dT%H:%M:%SZ'


def w3cdtf_now(now: Optional[datetime] = None) -> str:
    """Current UTC time as a W3CDTF timestamp (2024-01-31T12:00:00Z)."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).strftime(W3CDTF_FORMAT)


def content_types_xml() -> str:
    return XML_DECLARATION + f'''<Types xmlns="http://schemas.openxmlformats.org/package/2006/content-types">
  <Default Extension="rels" ContentType="{CT.OPC_RELATIONSHIPS}"/>
  <Default Extension="xml" ContentType="{CT.XML}"/>
  <Override PartName="/word/document.xml" ContentType="{CT.WML_DOCUMENT_MAIN}"/>
  <Override PartName="/word/styles.xml" ContentType="{CT.WML_STYLES}"/>
  <Override PartName="/word/settings.xml" ContentType="{CT.WML_SETTINGS}"/>
  <Override PartName="/word/webSettings.xml" ContentType="{CT.WML_WEB_SETTINGS}"/>
  <Override PartName="/word/fontTable.xml" ContentType="{CT.WML_FONT_TABLE}"/>
  <Override PartName="/docProps/core.xml" ContentType="{CT.OPC_CORE_PROPERTIES}"/>
  <Override PartName="/docProps/app.xml" ContentType="{CT.OFC_EXTENDED_PROPERTIES}"/>
</Types>'''


def package_rels_xml() -> str:
    return XML_DECLARATION + f'''<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships">
  <Relationship Id="rId1" Type="{RT.OFFICE_DOCUMENT}" Target="word/document.xml"/>
  <Relationship Id="rId2" Type="{RT.CORE_PROPERTIES}" Target="docProps/core.xml"/>
  <Relationship Id="rId3" Type="{RT.EXTENDED_PROPERTIES}" Target="docProps/app.xml"/>
</Relationships>'''


def font_table_xml() -> str:
    return XML_DECLARATION + '''<w:fonts xmlns:w="http://schemas.openxmlformats.org/wordprocessingml/2006/main">
  <w:font w:name="Times New Roman">
    <w:panose1 w:val="02020603050405020304"/>
    <w:charset w:val="00"/>
    <w:family w:val="roman"/>
    <w:pitch w:val="variable"/>
    <w:sig w:usb0="E0002EFF" w:usb1="C000785B" w:usb2="00000009" w:usb3="00000000" w:csb0="000001FF" w:csb1="00000000"/>
  </w:font>
</w:fonts>'''


def settings_xml() -> str:
    return XML_DECLARATION + '''<w:settings xmlns:w="http://schemas.openxmlformats.org/wordprocessingml/2006/main">
  <w:zoom w:percent="100"/>
  <w:defaultTabStop w:val="708"/>
  <w:characterSpacingControl w:val="doNotCompress"/>
</w:settings>'''


def web_settings_xml() -> str:
    return XML_DECLARATION + '''<w:webSettings xmlns:w="http://schemas.openxmlformats.org/wordprocessingml/2006/main">
  <w:optimizeForBrowser/>
</w:webSettings>'''


def app_properties_xml(application_name: str) -> str:
    return XML_DECLARATION + f'''<Properties xmlns="http://schemas.openxmlformats.org/officeDocument/2006/extended-properties">
  <Application>{escape(application_name, quote=False)}</Application>
  <DocSecurity>0</DocSecurity>
  <ScaleCrop>false</ScaleCrop>
  <SharedDoc>false</SharedDoc>
  <HyperlinksChanged>false</HyperlinksChanged>
  <AppVersion>1.0000</AppVersion>
</Properties>'''


def core_properties_xml(creator: str, timestamp: str) -> str:
    """docProps/core.xml with created and modified both set to timestamp."""
    return XML_DECLARATION + f'''<cp:coreProperties xmlns:cp="http://schemas.openxmlformats.org/package/2006/metadata/core-properties" xmlns:dc="http://purl.org/dc/elements/1.1/" xmlns:dcterms="http://purl.org/dc/terms/" xmlns:dcmitype="http://purl.org/dc/dcmitype/" xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance">
  <dc:creator>{escape(creator, quote=False)}</dc:creator>
  <dcterms:created xsi:type="dcterms:W3CDTF">{timestamp}</dcterms:created>
  <dcterms:modified xsi:type="dcterms:W3CDTF">{timestamp}</dcterms:modified>
</cp:coreProperties>'''


# Substituted when the source package has no styles or document relationships part
def empty_styles_xml() -> str:
    return XML_DECLARATION + '<w:styles xmlns:w="http://schemas.openxmlformats.org/wordprocessingml/2006/main"/>'


def empty_relationships_xml() -> str:
    return XML_DECLARATION + '<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships"/>'

from sqlevolutions.checksum import generate_checksum

EMPTY_SHA1 = "da39a3ee5e6b4b0d3255bfef95601890afd80709"
CREATE = "create table TEST (checksum VARCHAR(64), version INTEGER);"
INSERT = "insert into TEST (checksum, version) values ('abc', 1);"


def test_empty_list_hashes_to_empty_string():
    assert generate_checksum([]) == EMPTY_SHA1


def test_blank_entries_hash_to_empty_string():
    assert generate_checksum([""]) == EMPTY_SHA1
    assert generate_checksum(["   ", "\t"]) == EMPTY_SHA1


def test_known_checksums():
    assert generate_checksum([CREATE]) == "316baf1959f4030663c2ab409d3e2bc8af978967"
    assert generate_checksum([CREATE, INSERT]) == "612175e9c943a127b85da6279b29bf9d653b915a"


def test_edge_whitespace_and_blank_entries_are_ignored():
    padded = ["   " + CREATE + "    ", "      ", "\t\t", "   " + INSERT + "    ", ""]
    assert generate_checksum(padded) == generate_checksum([CREATE, INSERT])


def test_order_and_content_change_the_checksum():
    baseline = generate_checksum([CREATE, INSERT])
    assert generate_checksum([INSERT, CREATE]) != baseline
    assert generate_checksum([CREATE, INSERT.replace("abc", "abd")]) != baseline


def test_accepts_tuples():
    assert generate_checksum((CREATE, INSERT)) == generate_checksum([CREATE, INSERT])

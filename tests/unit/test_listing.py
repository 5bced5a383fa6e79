"""
Unit tests for directory listings.
"""

import os

from simplehttpd.handlers.listing import (
    DirectoryListing,
    ListingEntry,
    list_directory,
    render_entry,
    render_listing,
)


def names(entries):
    return [entry.name for entry in entries]


class TestListDirectory:
    """Tests for list_directory()."""

    def test_groups_and_order(self, docroot):
        """Directories come before files, each group sorted by name."""
        listing = list_directory(str(docroot))

        assert names(listing.directories) == ["..", "docs", "site"]
        assert names(listing.files) == ["big.bin", "hello.txt", "noext", "page.html.gz"]

    def test_parent_always_first(self, docroot):
        """Test that .. leads the directory group."""
        listing = list_directory(str(docroot / "docs"))

        assert names(listing.directories) == [".."]
        assert names(listing.files) == ["a.txt", "b.txt"]

    def test_dotfiles_hidden_by_default(self, docroot):
        """Test that dotfiles are left out by default."""
        assert ".hidden" not in names(list_directory(str(docroot)).files)

    def test_dotfiles_shown(self, docroot):
        """Dotfiles are listed on request, with .. still listed once."""
        listing = list_directory(str(docroot), hide_dotfiles=False)

        assert ".hidden" in names(listing.files)
        assert names(listing.directories).count("..") == 1

    def test_sizes(self, docroot):
        """Test file sizes; an empty file has no size shown."""
        (docroot / "empty").write_bytes(b"")
        files = {entry.name: entry for entry in list_directory(str(docroot)).files}

        assert files["hello.txt"].size == 10
        assert files["big.bin"].size == 3000
        assert files["empty"].size is None

    def test_symlink_to_directory_is_a_directory(self, docroot):
        """A link to a directory is grouped with directories and keeps its target."""
        os.symlink("docs", docroot / "latest")
        listing = list_directory(str(docroot))

        assert "latest" in names(listing.directories)
        latest = next(e for e in listing.directories if e.name == "latest")
        assert latest.link_target == "docs"

    def test_symlink_to_file(self, docroot):
        """Test that a file symlink records its target."""
        os.symlink("hello.txt", docroot / "greeting")
        files = {entry.name: entry for entry in list_directory(str(docroot)).files}

        assert files["greeting"].link_target == "hello.txt"

    def test_dangling_symlink_listed_as_file(self, docroot):
        """A link to nothing is still listed, as a file without a size."""
        os.symlink("nowhere", docroot / "dangling")
        files = {entry.name: entry for entry in list_directory(str(docroot)).files}

        assert files["dangling"].link_target == "nowhere"
        assert files["dangling"].size is None


class TestRenderListing:
    """Tests for the HTML output."""

    def test_parent_label(self):
        """.. is shown as "(parent directory)"."""
        html = render_entry(ListingEntry(name=".."), is_directory=True)

        assert html == '\t<li><a href="../">(parent directory)/</a></li>\n'

    def test_directory_entry(self):
        """Test that directory entries get a trailing slash."""
        html = render_entry(ListingEntry(name="docs"), is_directory=True)

        assert '<a href="docs/">docs/</a>' in html

    def test_file_entry_with_size(self):
        """Test a file entry with its size."""
        html = render_entry(ListingEntry(name="a.txt", size=12), is_directory=False)

        assert '<a href="a.txt">a.txt</a>' in html
        assert '<span class="size">(12)</span>' in html

    def test_symlink_note(self):
        """Symlinks are annotated with their target."""
        html = render_entry(ListingEntry(name="l", link_target="/etc/x"), is_directory=False)

        assert '<span class="symlink">→ /etc/x</span>' in html

    def test_names_are_encoded_and_escaped(self):
        """Hrefs are form-encoded, labels are HTML-escaped."""
        html = render_entry(ListingEntry(name='a b&<"c>.txt'), is_directory=False)

        assert 'href="a+b%26%3C%22c%3E.txt"' in html
        assert ">a b&amp;&lt;&quot;c&gt;.txt</a>" in html

    def test_page(self, docroot):
        """Test the full page: doctype, title, entry order and footer."""
        page = render_listing(list_directory(str(docroot)), "/").decode("utf-8")

        assert page.startswith("<!DOCTYPE html>")
        assert "<title>index: /</title>" in page
        assert page.index('href="docs/"') < page.index('href="hello.txt"')
        assert "<footer><p>simplehttpd</p></footer>" in page

    def test_title_is_escaped(self):
        """Test that the title is HTML-escaped."""
        page = render_listing(DirectoryListing(), "/<x>/").decode("utf-8")

        assert "<h1>/&lt;x&gt;/</h1>" in page

    def test_undecodable_name_passes_through(self):
        """A non-UTF-8 file name is written back byte for byte."""
        name = os.fsdecode(b"caf\xe9")
        page = render_listing(DirectoryListing(files=[ListingEntry(name=name)]), "/")

        assert b">caf\xe9</a>" in page
        assert b'href="caf%E9"' in page

    def test_title_keeps_utf8_request_bytes(self):
        """A raw UTF-8 request path is shown as UTF-8, not encoded twice."""
        page = render_listing(DirectoryListing(), "/caf\xc3\xa9/")

        assert b"<title>index: /caf\xc3\xa9/</title>" in page
        assert b"<h1>/caf\xc3\xa9/</h1>" in page

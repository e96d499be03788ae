"""
Test file classification, ignore rules and per-file analysis.
"""

from datetime import datetime

import pytest

from mediasort.analysis import FileAnalysisService, FileRecord
from mediasort.classifier import FileClassifier, MediaKind
from mediasort.date_components import DateComponents, DateComponentsBuilder
from mediasort.timestamps import DateResolver


class TestFileClassifier:
    """Test extension classification."""

    @pytest.mark.parametrize("extension,kind", [
        (".jpg", MediaKind.PHOTO),
        (".heic", MediaKind.PHOTO),
        (".png", MediaKind.PHOTO),
        (".mov", MediaKind.VIDEO),
        (".mp4", MediaKind.VIDEO),
        (".mkv", MediaKind.VIDEO),
        (".txt", MediaKind.OTHER),
        (".aae", MediaKind.OTHER),
        ("", MediaKind.OTHER),
    ])
    def test_classify(self, extension, kind):
        assert FileClassifier().classify(extension) is kind

    def test_custom_extension_sets(self):
        classifier = FileClassifier(photo_extensions=(".raw",), video_extensions=(".3gp",))
        assert classifier.is_photo(".raw")
        assert classifier.is_video(".3gp")
        assert not classifier.is_media(".jpg")

    def test_ignore_by_name(self):
        classifier = FileClassifier()
        assert classifier.should_ignore("/photos/.ds_store/a.jpg", ".jpg")
        assert not classifier.should_ignore("/photos/a.jpg", ".jpg")

    def test_ignore_by_extension(self):
        assert FileClassifier().should_ignore("/photos/IMG_0001.aae", ".aae")


class TestFileRecord:

    def test_from_path_lowers_extension(self, tmp_path):
        record = FileRecord.from_path(tmp_path / "IMG_0001.JPG")
        assert record.name == "IMG_0001.JPG"
        assert record.extension == ".jpg"
        assert record.path.is_absolute()


class TestFileAnalysisService:
    """Test analysis results for photos, videos and file names."""

    @pytest.fixture
    def dates(self):
        return {}

    @pytest.fixture
    def service(self, dates):
        resolver = DateResolver([lambda path: dates.get(path.name)])
        return FileAnalysisService(resolver=resolver, components_builder=DateComponentsBuilder())

    def test_photo_with_date(self, service, dates, tmp_path):
        dates["IMG_0001.jpg"] = datetime(2024, 3, 5, 14, 30)
        result = service.analyze(FileRecord.from_path(tmp_path / "IMG_0001.jpg"))

        assert not result.is_video
        assert not result.should_ignore
        assert result.has_valid_metadata
        assert result.date_components == DateComponents("2024", "03", "05", "14", "30")
        assert result.filename_components is None
        assert result.filename_date_matches_metadata
        assert result.date_description == "2024-03-05 14:30:00"

    def test_video_flag(self, service, dates, tmp_path):
        dates["clip.MOV"] = datetime(2024, 3, 5, 14, 30)
        assert service.analyze(FileRecord.from_path(tmp_path / "clip.MOV")).is_video

    def test_ignored_file_skips_date_lookup(self, tmp_path):
        calls = []
        resolver = DateResolver([lambda path: calls.append(path)])
        service = FileAnalysisService(resolver=resolver)

        result = service.analyze(FileRecord.from_path(tmp_path / ".DS_Store" / "a.aae"))
        assert result.should_ignore
        assert calls == []

    def test_no_date_anywhere(self, service, tmp_path):
        result = service.analyze(FileRecord.from_path(tmp_path / "IMG_0001.jpg"))
        assert not result.has_valid_metadata
        assert result.resolved_date is None
        assert result.date_description == "-"
        assert result.filename_date_matches_metadata

    def test_name_without_date_matches_regardless_of_metadata(self, service, dates, tmp_path):
        dates["holiday.jpg"] = datetime(1999, 1, 1)
        assert service.analyze(FileRecord.from_path(tmp_path / "holiday.jpg")).filename_date_matches_metadata

    def test_name_date_without_metadata_does_not_match(self, service, tmp_path):
        result = service.analyze(FileRecord.from_path(tmp_path / "2024-03-05--14-30.jpg"))
        assert result.filename_components is not None
        assert not result.filename_date_matches_metadata

    def test_name_date_matching_metadata(self, service, dates, tmp_path):
        dates["2024-03-05--14-30.jpg"] = datetime(2024, 3, 5, 14, 30, 12)
        assert service.analyze(FileRecord.from_path(tmp_path / "2024-03-05--14-30.jpg")).filename_date_matches_metadata

    def test_name_date_contradicting_metadata(self, service, dates, tmp_path):
        dates["2024-03-05--14-30.jpg"] = datetime(2024, 3, 5, 9, 30)
        assert not service.analyze(FileRecord.from_path(tmp_path / "2024-03-05--14-30.jpg")).filename_date_matches_metadata

    def test_name_without_time_tolerates_metadata_time(self, service, dates, tmp_path):
        dates["2024-03-05.jpg"] = datetime(2024, 3, 5, 9, 30)
        assert service.analyze(FileRecord.from_path(tmp_path / "2024-03-05.jpg")).filename_date_matches_metadata

    def test_unusable_date_treated_as_absent(self, tmp_path):
        class BrokenBuilder(DateComponentsBuilder):
            def from_instant(self, instant):
                raise OverflowError("out of range")

        resolver = DateResolver([lambda path: datetime(2024, 1, 1)])
        service = FileAnalysisService(resolver=resolver, components_builder=BrokenBuilder())

        result = service.analyze(FileRecord.from_path(tmp_path / "a.jpg"))
        assert result.date_components is None
        assert result.resolved_date is None

    def test_unplaceable_date_treated_as_absent(self, tmp_path):
        class UnplaceableDate(datetime):
            def astimezone(self, tz=None):
                raise ValueError("year 0 is out of range")

        resolver = DateResolver([lambda path: UnplaceableDate(1, 1, 1)])
        service = FileAnalysisService(resolver=resolver, components_builder=DateComponentsBuilder())

        result = service.analyze(FileRecord.from_path(tmp_path / "2024-03-05.jpg"))
        assert result.date_components is None
        assert result.resolved_date is None
        assert not result.filename_date_matches_metadata

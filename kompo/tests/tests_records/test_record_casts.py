"""Record casts -- array, boolean and numeric attributes."""

from kompo.tests.models import Post, Tag


class TestCasts:
    def test_declared_cast(self):
        post = Post(title="x")
        assert post.has_cast("published")
        assert not post.has_cast("keywords")

    def test_merged_casts_are_per_instance(self):
        post = Post(title="x")
        post.merge_casts({"keywords": "array"})

        assert post.has_cast("keywords")
        assert not Post(title="y").has_cast("keywords")

    def test_array_cast_stores_json_text(self):
        post = Post(title="x")
        post.merge_casts({"keywords": "array"})

        post.set_attribute("keywords", ["python", "orm"])

        assert post.keywords == '["python", "orm"]'
        assert post.get_attribute("keywords") == ["python", "orm"]

    def test_boolean_cast_reads_form_values(self):
        post = Post(title="x")
        post.set_attribute("published", "true")
        assert post.published is True
        post.set_attribute("published", "0")
        assert post.published is False

    def test_uncast_attribute_is_raw(self):
        post = Post(title="x")
        post.set_attribute("body", "text")
        assert post.get_attribute("body") == "text"


class TestKeys:
    def test_key_name_and_value(self, session):
        tag = Tag(name="python")
        session.add(tag)
        session.commit()

        assert Tag.key_name() == "id"
        assert tag.get_key() == tag.id

    def test_to_dict_lists_columns(self, session):
        tag = Tag(name="python")
        session.add(tag)
        session.commit()

        assert tag.to_dict() == {"id": tag.id, "name": "python"}

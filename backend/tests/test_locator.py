"""
Reference locator 测试
"""

from slack_images.locator import (
    extract_images_from_attachments,
    extract_images_from_message,
    extract_images_from_messages,
)
from slack_images.models import ImageKey, SlackAttachment, SlackMessage

TS = "1234567890.123456"


def _message(**kwargs):
    return SlackMessage.model_validate({"ts": TS, **kwargs})


# ============================================
# 1. 消息附件文件
# ============================================

class TestExtractFromMessage:
    """从 message.files 提取图片"""

    def test_single_png(self):
        msg = _message(files=[{
            "id": "F001", "name": "screenshot.png", "mimetype": "image/png", "size": 1024,
            "url_private": "https://files.slack.com/files-pri/T1-F001/screenshot.png",
        }])

        images = extract_images_from_message(msg)

        assert len(images) == 1
        img = images[0]
        assert img.file_id == "F001"
        assert img.name == "screenshot.png"
        assert img.mime_type == "image/png"
        assert img.size == 1024
        assert img.url == "https://files.slack.com/files-pri/T1-F001/screenshot.png"
        assert img.msg_ts == TS
        assert img.key == ImageKey("file", "F001")

    def test_falls_back_to_private_download_url(self):
        """测试：url_private 为空时使用 url_private_download"""
        msg = _message(files=[{
            "id": "F002", "name": "photo.jpg", "mimetype": "image/jpeg",
            "url_private": "", "url_private_download": "https://files.slack.com/download/photo.jpg",
        }])

        images = extract_images_from_message(msg)

        assert [i.url for i in images] == ["https://files.slack.com/download/photo.jpg"]

    def test_skips_file_without_url(self):
        """测试：没有下载地址的文件被丢弃"""
        msg = _message(files=[{"id": "F003", "name": "x.png", "mimetype": "image/png"}])
        assert extract_images_from_message(msg) == []

    def test_skips_non_images(self):
        """测试：非图片和不支持的图片类型被跳过"""
        msg = _message(files=[
            {"id": "F1", "name": "doc.pdf", "mimetype": "application/pdf", "url_private": "https://files.slack.com/doc.pdf"},
            {"id": "F2", "name": "logo.svg", "mimetype": "image/svg+xml", "url_private": "https://files.slack.com/logo.svg"},
            {"id": "F3", "name": "anim.gif", "mimetype": "IMAGE/GIF; x=y", "url_private": "https://files.slack.com/anim.gif"},
        ])

        images = extract_images_from_message(msg)

        assert [i.file_id for i in images] == ["F3"]

    def test_preserves_order_and_duplicates(self):
        """测试：保持输入顺序，不合并重复项"""
        file = {"id": "F1", "name": "a.png", "mimetype": "image/png", "url_private": "https://files.slack.com/a.png"}
        msg = _message(files=[file, {**file, "id": "F2"}, file])

        images = extract_images_from_message(msg)

        assert [i.file_id for i in images] == ["F1", "F2", "F1"]


# ============================================
# 2. 链接预览
# ============================================

class TestExtractFromAttachments:
    """从 message.attachments 提取图片"""

    def test_slack_hosted_image_url(self):
        images = extract_images_from_attachments(
            [SlackAttachment(image_url="https://files.slack.com/files/123/preview.png")], TS,
        )

        assert len(images) == 1
        img = images[0]
        assert img.file_id is None
        assert img.name == "preview.png"
        assert img.mime_type == "image/png"
        assert img.size == 0
        assert img.key == ImageKey("url", "https://files.slack.com/files/123/preview.png")

    def test_external_image_url_blocked(self):
        """测试：外部地址被 SSRF 防护拦截"""
        images = extract_images_from_attachments(
            [SlackAttachment(image_url="https://external-site.com/image.png")], TS,
        )
        assert images == []

    def test_no_image_url(self):
        images = extract_images_from_attachments(
            [SlackAttachment(title="Some attachment", text="With text but no image")], TS,
        )
        assert images == []

    def test_thumb_url_fallback(self):
        images = extract_images_from_attachments(
            [SlackAttachment(thumb_url="https://avatars.slack-edge.com/thumb.jpg")], TS,
        )
        assert [(i.name, i.mime_type) for i in images] == [("thumb.jpg", "image/jpeg")]

    def test_prefers_image_url(self):
        """测试：两个都有时只取全尺寸图片"""
        images = extract_images_from_attachments([SlackAttachment(
            image_url="https://files.slack.com/files/123/full.png",
            thumb_url="https://files.slack.com/files/123/thumb.png",
        )], TS)
        assert [i.name for i in images] == ["full.png"]

    def test_blocked_image_url_uses_thumb(self):
        """测试：全尺寸地址被拒绝时回退到缩略图"""
        images = extract_images_from_attachments([SlackAttachment(
            image_url="https://external.com/image.png",
            thumb_url="https://files.slack.com/files/123/thumb.png",
        )], TS)
        assert [i.name for i in images] == ["thumb.png"]

    def test_both_blocked(self):
        images = extract_images_from_attachments([SlackAttachment(
            image_url="https://external.com/image.png",
            thumb_url="https://external.com/thumb.png",
        )], TS)
        assert images == []

    def test_unknown_extension_defaults_to_png(self):
        images = extract_images_from_attachments(
            [SlackAttachment(image_url="https://files.slack.com/files/123/screenshot")], TS,
        )
        assert images[0].mime_type == "image/png"
        assert images[0].name == "screenshot"


# ============================================
# 3. 多条消息
# ============================================

class TestExtractFromMessages:

    def test_files_then_attachments_per_message(self):
        """测试：每条消息先文件后预览，消息之间保持顺序；支持原始 dict"""
        messages = [
            {
                "ts": "1.0",
                "files": [{"id": "F1", "name": "a.png", "mimetype": "image/png", "url_private": "https://files.slack.com/a.png"}],
                "attachments": [{"image_url": "https://files.slack.com/preview.jpg"}],
                "user": "U123",
            },
            _message(attachments=[{"thumb_url": "https://avatars.slack-edge.com/t.gif"}]),
        ]

        images = extract_images_from_messages(messages)

        assert [i.name for i in images] == ["a.png", "preview.jpg", "t.gif"]
        assert [i.msg_ts for i in images] == ["1.0", "1.0", TS]

    def test_empty(self):
        assert extract_images_from_messages([]) == []

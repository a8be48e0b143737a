# frontend/forms/project_form.py
import gradio as gr

from backend.models.schemas import ProjectStatus
from ..client import create_project

STATUS_CHOICES = [s.value for s in ProjectStatus]


def create_form(user_id, user_name, categories):
    with gr.Column() as col:
        gr.Markdown("### 创建项目")
        title = gr.Textbox(label="项目标题")
        description = gr.Textbox(label="简介", lines=2)
        long_description = gr.Textbox(label="详细描述", lines=4)
        category = gr.Dropdown(categories, label="分类", value=categories[0])
        tags = gr.Textbox(label="标签 (逗号分隔)", value="")
        image_urls = gr.Textbox(label="图片地址 (逗号分隔，第一张为封面)", value="")
        demo_url = gr.Textbox(label="演示地址 (可选)")
        video_url = gr.Textbox(label="视频地址 (可选)")
        deadline = gr.Textbox(label="截止日期 (ISO 格式，可选)")
        status = gr.Dropdown(STATUS_CHOICES, label="状态", value="active")
        save_btn = gr.Button("保存项目")
        save_result = gr.Textbox(label="保存结果", interactive=False)

        save_event = save_btn.click(
            fn=create_project,
            inputs=[title, description, long_description, category, tags, image_urls,
                    demo_url, video_url, deadline, status, user_id, user_name],
            outputs=save_result
        )
    return col, save_event

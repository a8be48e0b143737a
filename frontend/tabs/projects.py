# frontend/tabs/projects.py
import gradio as gr

from backend.core.listing import PROJECT_CATEGORIES, SORT_OPTIONS, STATUS_FILTERS
from ..client import load_projects, like_project, bookmark_project, check_health
from ..forms.project_form import create_form

# 选项直接取自后端 listing 模块
CATEGORIES = PROJECT_CATEGORIES
SORT_CHOICES = [(label, key) for key, label in SORT_OPTIONS.items()]


def create_tab():
    with gr.Tab("📁 项目广场"):
        gr.Markdown("## 发现项目 - 本地优先，联网后自动同步到共享库")

        with gr.Row():
            user_id = gr.Textbox(label="用户ID (由登录获得)")
            user_name = gr.Textbox(label="显示名称")
            health_btn = gr.Button("检查连接")
            health_result = gr.Textbox(label="连接状态", interactive=False)

        with gr.Row():
            with gr.Column(scale=1):
                _, save_event = create_form(user_id, user_name, CATEGORIES[1:])

            with gr.Column(scale=2):
                gr.Markdown("### 项目列表")
                with gr.Row():
                    search = gr.Textbox(label="搜索")
                    category = gr.Dropdown(CATEGORIES, label="分类", value="All")
                    status = gr.Dropdown(STATUS_FILTERS, label="状态", value="active")
                    sort = gr.Dropdown(SORT_CHOICES, label="排序", value="newest")
                    refresh_btn = gr.Button("刷新列表")
                project_list = gr.JSON(label="Projects")

                with gr.Row():
                    action_id = gr.Textbox(label="项目ID")
                    like_btn = gr.Button("点赞")
                    bookmark_btn = gr.Button("收藏")
                    action_result = gr.Textbox(label="操作结果", interactive=False)

        # 事件绑定
        list_inputs = [search, category, status, sort]

        refresh_btn.click(fn=load_projects, inputs=list_inputs, outputs=project_list)

        # 保存完成后刷新列表
        save_event.then(fn=load_projects, inputs=list_inputs, outputs=project_list)

        health_btn.click(fn=check_health, outputs=health_result)

        like_btn.click(
            fn=like_project,
            inputs=[action_id, user_id],
            outputs=action_result
        ).then(fn=load_projects, inputs=list_inputs, outputs=project_list)

        bookmark_btn.click(
            fn=bookmark_project,
            inputs=action_id,
            outputs=action_result
        ).then(fn=load_projects, inputs=list_inputs, outputs=project_list)

    return project_list, list_inputs

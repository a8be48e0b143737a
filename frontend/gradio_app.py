# frontend/gradio_app.py
import gradio as gr

from .client import load_projects
from .tabs import projects

# ========== 构建界面 ==========
with gr.Blocks(title="CollabHub") as demo:
    gr.Markdown("# CollabHub 项目协作平台")

    project_list, list_inputs = projects.create_tab()

    # 页面加载时自动加载项目列表
    demo.load(
        fn=load_projects,
        inputs=list_inputs,
        outputs=project_list
    )

if __name__ == "__main__":
    demo.launch()

"""Minimal demonstration of a two-turn conversation.

Credentials are read from CHATGPT_SESSION_TOKEN / CHATGPT_CLEARANCE_TOKEN /
CHATGPT_USER_AGENT, a .env file or config.yaml.
"""

from chatgpt_core import create_session

if __name__ == "__main__":
    session = create_session()
    conversation = session.new_conversation()
    for question in ["你好，请介绍一下自己。", "用一句话总结刚才的回答"]:
        reply = conversation.send_message(question)
        print("User:", question)
        print("ChatGPT:", reply)
    print("conversation_id:", conversation.conversation_id)

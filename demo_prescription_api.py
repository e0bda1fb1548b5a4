#!/usr/bin/env python3
"""
处方流程 API 演示脚本

使用方法:
1. 确保Django服务器正在运行: python manage.py runserver
2. 运行此脚本: python demo_prescription_api.py [patient_id]

走一遍完整流程：提交 → 药房推进状态 → 药剂师留言 → 患者回复 → 取药 → 续药 → 通知收件箱
"""

import sys

import requests

# API配置
BASE_URL = "http://localhost:8000/api"


def show(title, response):
    print("\n" + "=" * 60)
    print(title)
    print(f"响应状态码: {response.status_code}")
    print("=" * 60)

    if response.status_code >= 400:
        error = response.json()
        print(f"❌ {error.get('code')}: {error.get('message')}")
        if error.get('detail'):
            print(f"   detail: {error['detail']}")
        return None

    if not response.content:
        return None

    data = response.json()
    if 'rxNumber' in data:
        print(f"  - 处方: {data['rxNumber']} ({data['id']})")
        print(f"  - 药物: {data['medicationName']} {data['dosage']}")
        print(f"  - 状态: {data['status']} [{data['statusIndex']}]")
        print(f"  - 剩余续药次数: {data['refillsRemaining']}")
        print(f"  - 可回复: {data['canReply']}  未读消息: {data['hasUnreadMessages']}")
    else:
        print(data)
    return data


def submit_prescription(patient_id):
    payload = {
        "forUser": patient_id,
        "forUserName": "John Doe",
        "medicationName": "Lisinopril",
        "dosage": "10mg",
        "instructions": "Take one tablet daily in the morning",
        "copayAmount": 10.99,
    }
    return show("提交新处方", requests.post(f"{BASE_URL}/prescriptions/", json=payload))


def advance(prescription_id, status, message=None):
    payload = {"status": status}
    if message:
        payload["message"] = message
    return show(
        f"推进状态 → {status}",
        requests.post(f"{BASE_URL}/prescriptions/{prescription_id}/status/", json=payload),
    )


def run(patient_id):
    rx = submit_prescription(patient_id)
    if rx is None:
        return
    rx_id = rx["id"]

    # 药剂师还没开口，患者回复应被拒绝
    show("患者抢先回复（预期 409）",
         requests.post(f"{BASE_URL}/prescriptions/{rx_id}/messages/reply/", json={"content": "Hello?"}))

    advance(rx_id, "Entered into System")
    advance(rx_id, "Pharmacist Check")
    show("药剂师留言",
         requests.post(f"{BASE_URL}/prescriptions/{rx_id}/messages/pharmacist/",
                       json={"content": "Are you currently taking any potassium supplements?"}))
    show("患者回复",
         requests.post(f"{BASE_URL}/prescriptions/{rx_id}/messages/reply/", json={"content": "No, I'm not."}))
    show("标记已读", requests.post(f"{BASE_URL}/prescriptions/{rx_id}/messages/read/"))

    advance(rx_id, "Prep & Packaging")
    advance(rx_id, "Billing")
    advance(rx_id, "Ready for Pickup", "Available at counter 2")

    show("确认取药", requests.post(f"{BASE_URL}/prescriptions/{rx_id}/pickup/"))
    show("申请续药", requests.post(f"{BASE_URL}/prescriptions/{rx_id}/refill/"))

    show("处方列表", requests.get(f"{BASE_URL}/patients/{patient_id}/prescriptions/"))
    show("通知收件箱", requests.get(f"{BASE_URL}/patients/{patient_id}/notifications/"))


if __name__ == "__main__":
    try:
        run(sys.argv[1] if len(sys.argv) > 1 else "user123")
    except requests.exceptions.ConnectionError:
        print(f"\n❌ 无法连接到 {BASE_URL}，请先运行: python manage.py runserver")
